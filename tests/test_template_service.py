"""Tests for template substitution, rendering and the template cache."""

import pytest

from notify_engine.models.notification import ChannelType, NotificationType
from notify_engine.models.template import RenderedContent
from notify_engine.services.cache import MISSING, TTLCache
from notify_engine.services.template_service import (
    TemplateNotFoundError,
    TemplateService,
    substitute,
    template_key,
)

from conftest import make_template


class TestSubstitute:

    def test_replaces_known_variables(self):
        assert substitute("Your payment of {{amount}} failed", {"amount": "9.99"}) == \
            "Your payment of 9.99 failed"

    def test_missing_and_none_variables_become_empty(self):
        assert substitute("Hi {{name}}{{suffix}}!", {"suffix": None}) == "Hi !"

    def test_values_are_stringified(self):
        assert substitute("{{n}} days", {"n": 3}) == "3 days"

    def test_substituted_values_are_not_rescanned(self):
        assert substitute("{{a}}", {"a": "{{b}}", "b": "x"}) == "{{b}}"

    def test_non_token_braces_are_left_alone(self):
        assert substitute("{single} {{ spaced }}", {"single": "x"}) == "{single} {{ spaced }}"

    def test_empty_text(self):
        assert substitute(None, {"a": 1}) == ""


def test_template_key_joins_type_and_channel():
    assert template_key(NotificationType.PAYMENT_FAILED, ChannelType.EMAIL) == "payment_failed_email"


@pytest.fixture
def service(template_storage):
    return TemplateService(template_storage)


async def test_render_all_fields(service, template_storage):
    await template_storage.upsert(make_template(
        subject_template="Payment of {{amount}}",
        html_template="<p>{{amount}}</p>",
        text_template="Your payment of {{amount}} failed",
    ))

    content = await service.render("payment_failed_email", ChannelType.EMAIL, {"amount": "9.99"})

    assert content.subject == "Payment of 9.99"
    assert content.html == "<p>9.99</p>"
    assert content.text == "Your payment of 9.99 failed"


async def test_render_is_idempotent(service, template_storage):
    await template_storage.upsert(make_template(text_template="{{a}}-{{b}}"))
    variables = {"a": 1, "b": "two"}

    first = await service.render("payment_failed_email", ChannelType.EMAIL, variables)
    second = await service.render("payment_failed_email", ChannelType.EMAIL, variables)

    assert first == second


async def test_missing_template_raises(service):
    with pytest.raises(TemplateNotFoundError) as exc_info:
        await service.render("payment_failed_email", ChannelType.EMAIL, {})

    assert exc_info.value.template_key == "payment_failed_email"


async def test_inactive_template_is_not_used(service, template_storage):
    await template_storage.upsert(make_template(text_template="x", is_active=False))

    with pytest.raises(TemplateNotFoundError):
        await service.render("payment_failed_email", ChannelType.EMAIL, {})


async def test_override_replaces_template_fields(service, template_storage):
    await template_storage.upsert(make_template(subject_template="S", text_template="T {{a}}"))

    content = await service.render(
        "payment_failed_email", ChannelType.EMAIL, {"a": "1"}, override={"subject": "Custom {{a}}"}
    )

    assert content.subject == "Custom 1"
    assert content.text == "T 1"


async def test_override_without_template_renders(service):
    content = await service.render(
        "payment_failed_email", ChannelType.EMAIL, {"a": "1"}, override={"text": "Only {{a}}"}
    )

    assert content.text == "Only 1"
    assert content.subject == ""


async def test_hits_are_cached_misses_are_not(service, template_storage):
    await template_storage.upsert(make_template(text_template="x"))

    for _ in range(3):
        await service.get_template("payment_failed_email", ChannelType.EMAIL)
        await service.get_template("welcome_email", ChannelType.EMAIL)

    assert template_storage.lookups == 1 + 3


async def test_template_created_after_a_miss_is_used(service, template_storage):
    with pytest.raises(TemplateNotFoundError):
        await service.render("payment_failed_email", ChannelType.EMAIL, {"amount": "5"})

    # written directly to storage, as another instance would
    await template_storage.upsert(make_template(text_template="Due {{amount}}"))
    content = await service.render("payment_failed_email", ChannelType.EMAIL, {"amount": "5"})

    assert content.text == "Due 5"


async def test_save_template_invalidates_cache(service, template_storage):
    await template_storage.upsert(make_template(text_template="old"))
    await service.render("payment_failed_email", ChannelType.EMAIL, {})

    await service.save_template(make_template(text_template="new"))
    content = await service.render("payment_failed_email", ChannelType.EMAIL, {})

    assert content.text == "new"


async def test_deactivate_template_invalidates_cache(service, template_storage):
    await template_storage.upsert(make_template(text_template="x"))
    await service.render("payment_failed_email", ChannelType.EMAIL, {})

    assert await service.deactivate_template("payment_failed_email") is True
    with pytest.raises(TemplateNotFoundError):
        await service.render("payment_failed_email", ChannelType.EMAIL, {})


def test_rendered_content_channel_views():
    content = RenderedContent(subject="s", html="h", text="t", push_title="pt", push_body="pb")

    assert content.for_channel(ChannelType.EMAIL) == {"subject": "s", "html": "h", "text": "t"}
    assert content.for_channel(ChannelType.IN_APP) == {"subject": "s", "html": "h", "text": "t"}
    assert content.for_channel(ChannelType.PUSH) == {"push_title": "pt", "push_body": "pb"}
    assert content.for_channel(ChannelType.SMS) == {"text": "t"}


class TestTTLCache:

    def test_expires_after_ttl(self):
        now = [0.0]
        cache = TTLCache("test", ttl=10, clock=lambda: now[0])
        cache.set("k", "v")

        now[0] = 10.0
        assert cache.get("k") == "v"
        now[0] = 10.5
        assert cache.get("k") is MISSING

    def test_none_is_a_cached_value(self):
        cache = TTLCache("test")
        cache.set("k", None)

        assert cache.contains("k")
        assert cache.get("k") is None

    def test_invalidate_and_clear(self):
        cache = TTLCache("test")
        cache.set("a", 1)
        cache.set("b", 2)

        cache.invalidate("a")
        assert cache.get("a", "gone") == "gone"
        assert cache.cached_count == 1

        cache.clear()
        assert cache.cached_count == 0
