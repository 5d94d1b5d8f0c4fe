import pytest

from activemail.message import ActiveMessage, FieldState, MessageField
from tests.active_messages import ContactUs, PasswordReset


class Foo(ActiveMessage):
    def __init__(self, **kwargs):
        self.source = {
            "from_email": "from@example.com",
            "to": ["to@example.com"],
            "subject": "Subject",
            "body_text": "Text",
            "body_html": "<b>Html</b>",
        }
        self.default_calls = 0
        super().__init__(**kwargs)

    def _default(self, name):
        self.default_calls += 1
        return self.source[name]

    def default_from_email(self):
        return self._default("from_email")

    def default_to(self):
        return self._default("to")

    def default_subject(self):
        return self._default("subject")

    def default_body_text(self):
        return self._default("body_text")

    def default_body_html(self):
        return self._default("body_html")


class TestFieldState:
    def test_assigning_non_empty_value_resolves(self):
        state = FieldState()
        state.assign("value")
        assert state.resolved is True
        assert state.resolve(lambda: "default") == "value"

    @pytest.mark.parametrize("empty", [None, "", [], (), {}])
    def test_assigning_empty_value_leaves_unresolved(self, empty):
        state = FieldState()
        state.assign(empty)
        assert state.resolved is False
        assert state.resolve(lambda: "default") == "default"

    def test_resolve_calls_default_once(self):
        calls = []
        state = FieldState()

        def default():
            calls.append(1)
            return ""

        state.resolve(default)
        state.resolve(default)
        assert len(calls) == 1


class TestMessageFields:
    @pytest.mark.parametrize("field", ActiveMessage.FIELDS)
    def test_explicit_value_wins_over_default(self, field):
        message = Foo()
        setattr(message, field, "explicit")
        assert getattr(message, field) == "explicit"
        assert message.default_calls == 0

    @pytest.mark.parametrize("field", ActiveMessage.FIELDS)
    def test_unset_field_returns_default(self, field):
        message = Foo()
        assert getattr(message, field) == message.source[field]

    @pytest.mark.parametrize("field", ActiveMessage.FIELDS)
    def test_default_is_memoized(self, field):
        message = Foo()
        first = getattr(message, field)
        message.source[field] = "changed"
        assert getattr(message, field) == first
        assert message.default_calls == 1

    @pytest.mark.parametrize("field", ActiveMessage.FIELDS)
    def test_empty_value_falls_back_to_default(self, field):
        message = Foo()
        setattr(message, field, "")
        assert getattr(message, field) == message.source[field]

    def test_resetting_to_empty_recomputes_default(self):
        message = Foo()
        assert message.subject == "Subject"
        message.source["subject"] = "Changed"
        message.subject = ""
        assert message.subject == "Changed"

    def test_fields_are_independent_per_instance(self):
        first = Foo(subject="first")
        second = Foo()
        assert first.subject == "first"
        assert second.subject == "Subject"

    def test_class_access_returns_descriptor(self):
        assert isinstance(ActiveMessage.subject, MessageField)

    def test_constructor_sets_fields_and_attributes(self):
        message = ContactUs(subject="Hi", name="Ann")
        assert message.subject == "Hi"
        assert message.name == "Ann"
        assert message.email is None

    def test_constructor_rejects_unknown_attributes(self):
        with pytest.raises(TypeError, match="bogus"):
            ContactUs(bogus="value")


class TestMessageDefinition:
    def test_missing_default_cannot_be_instantiated(self):
        class Incomplete(ActiveMessage):
            def default_from_email(self):
                return "a@example.com"

            def default_to(self):
                return "b@example.com"

            def default_subject(self):
                return "Subject"

        with pytest.raises(TypeError):
            Incomplete()

    def test_abstract_message_is_not_registered(self):
        class AbstractNotice(ActiveMessage):
            pass

        assert "AbstractNotice" not in ActiveMessage.registered_messages()

    def test_concrete_message_is_registered(self):
        assert ActiveMessage.registered_messages()["ContactUs"] is ContactUs

    def test_template_name_is_unqualified_class_name(self):
        assert Foo().template_name() == "Foo"
        assert ContactUs().template_name() == "ContactUs"

    def test_view_name_default(self):
        assert ContactUs().view_name() == "activemail/active_message.html"

    def test_view_name_from_settings(self, settings):
        settings.ACTIVEMAIL = {"VIEW_NAME": "emails/base.html"}
        assert ContactUs().view_name() == "emails/base.html"

    def test_default_body_text(self):
        assert ContactUs().body_text == (
            "You need email client with HTML support to view this message."
        )

    def test_default_body_text_can_be_overridden(self):
        assert PasswordReset().body_text == "Reset password for {username}: {reset_url}"

    def test_template_data_hints_default_empty(self):
        assert Foo().template_data_hints() == {}

    def test_attributes_in_declaration_order(self):
        message = ContactUs(email="ann@example.com", name="Ann")
        assert message.attributes() == ["name", "email", "message"]
        assert message.get_attributes() == {
            "name": "Ann",
            "email": "ann@example.com",
            "message": None,
        }


class TestValidation:
    def test_valid_message(self):
        message = ContactUs(name="Ann", email="ann@example.com", message="Hi")
        assert message.validate() is True
        assert message.get_errors() == {}

    def test_every_attribute_is_required(self):
        message = ContactUs(name="Ann")
        assert message.validate() is False
        assert message.get_errors() == {
            "email": ["Email cannot be blank."],
            "message": ["Message cannot be blank."],
        }

    def test_message_without_attributes_is_valid(self):
        assert Foo().validate() is True

    def test_error_summary_default_glue(self):
        message = ContactUs()
        message.validate()
        assert message.get_error_summary() == (
            "Name cannot be blank.\nEmail cannot be blank.\nMessage cannot be blank."
        )

    def test_error_summary_custom_glue(self):
        message = ContactUs(message="Hi")
        message.validate()
        assert message.get_error_summary(", ") == (
            "Name cannot be blank., Email cannot be blank."
        )

    def test_error_summary_keeps_report_order(self):
        message = ContactUs()
        message.add_error("name", "first")
        message.add_error("email", "second")
        message.add_error("name", "third")
        assert message.get_error_summary("|") == "first|third|second"

    def test_validate_clears_previous_errors(self):
        message = ContactUs()
        message.validate()
        message.name = "Ann"
        message.email = "ann@example.com"
        message.message = "Hi"
        assert message.validate() is True
        assert message.has_errors() is False

    def test_attribute_label(self):
        assert PasswordReset().attribute_label("reset_url") == "Reset url"


class TestParseTemplate:
    def test_replaces_known_tokens(self):
        assert ContactUs().parse_template("Hello {name}", {"name": "Ann"}) == "Hello Ann"

    def test_leaves_unknown_tokens(self):
        assert ContactUs().parse_template("Hi {missing}", {}) == "Hi {missing}"
        assert ContactUs().parse_template("Hi {missing}", {"name": "Ann"}) == "Hi {missing}"

    def test_single_pass(self):
        data = {"a": "{b}", "b": "x"}
        assert ContactUs().parse_template("{a} {b}", data) == "{b} x"

    def test_none_value_becomes_empty(self):
        assert ContactUs().parse_template("Hi {name}!", {"name": None}) == "Hi !"

    def test_non_string_values(self):
        assert ContactUs().parse_template("{count} items", {"count": 3}) == "3 items"

    def test_repeated_token(self):
        assert ContactUs().parse_template("{x}-{x}", {"x": "y"}) == "y-y"

    def test_apply_parse_parses_subject_and_bodies_once(self):
        message = ContactUs(
            subject="To {name}",
            body_text="{name}",
            body_html="<p>{name}</p>",
        )
        message.apply_parse({"name": "{name}!"})
        assert message.subject == "To {name}!"
        assert message.body_text == "{name}!"
        assert message.body_html == "<p>{name}!</p>"

    def test_apply_parse_leaves_addresses(self):
        message = PasswordReset(username="ann")
        message.apply_parse(message.compose_template_data())
        assert message.to == "{username}@example.com"
