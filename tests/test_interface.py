import pytest

from shared_contacts.interface import (
    IM, Contact, Email, GetResult, Name, PhoneNumber, Rel, check_relation
)


class TestCheckRelation:
    def test_rel_only(self):
        check_relation(Email(address="a@example.com", rel=Rel.HOME))

    def test_label_only(self):
        check_relation(PhoneNumber(number="555", label="Summer house"))

    @pytest.mark.parametrize("entry", [
        IM(address="liz@jabber.org"),
        Email(address="a@example.com", rel=Rel.WORK, label="Office"),
    ])
    def test_rejects_neither_or_both(self, entry):
        with pytest.raises(ValueError, match="exactly one of rel or label"):
            check_relation(entry)


class TestContact:
    def test_clone_is_deep(self):
        contact = Contact(name=Name(given_name="Jane"), emails=[Email(address="jane@example.com", rel=Rel.HOME)])

        copy = contact.clone()
        copy.name.given_name = "Lydia"
        copy.emails.append(Email(address="lydia@example.com", rel=Rel.HOME))

        assert contact.name.given_name == "Jane"
        assert len(contact.emails) == 1

    def test_display_name(self):
        assert Contact(name=Name(prefix="Mr.", family_name="Darcy")).display_name == "Mr. Darcy"
        assert Contact(name=Name(full_name="  Fitzwilliam Darcy ")).display_name == "Fitzwilliam Darcy"
        assert Contact().display_name == "(No name)"

    def test_primary_email(self):
        emails = [Email(address="first@example.com", rel=Rel.HOME), Email(address="main@example.com", rel=Rel.WORK, primary=True)]

        assert Contact(emails=emails).primary_email == "main@example.com"
        assert Contact(emails=emails[:1]).primary_email == "first@example.com"
        assert Contact().primary_email is None

    def test_resource_id(self):
        contact = Contact(id="http://www.google.com/m8/feeds/contacts/example.com/base/20017e218fa39973")

        assert contact.resource_id == "20017e218fa39973"


class TestGetResult:
    def test_states(self):
        contact = Contact()

        assert GetResult.changed(contact).is_changed
        assert GetResult.changed(contact).contact is contact
        assert GetResult.unchanged().is_unchanged
        assert GetResult.not_found().is_not_found
        assert GetResult.not_found().contact is None
