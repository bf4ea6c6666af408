import pytest

from page_translator.core.errors import HttpError
from page_translator.core.messages import MessageRouter
from page_translator.core.translation_pipeline import TranslationPipeline


def _router(translator, api_key="test-api-key"):
    settings = {"api_key": api_key} if api_key else {}
    return MessageRouter(TranslationPipeline(settings, translator=translator))


def _translate_message(text, target="zh"):
    return {"type": "TRANSLATE_TEXT", "payload": {"text": text, "targetLanguage": target}}


@pytest.mark.asyncio
async def test_translate_text_success_then_cached(fake_translator):
    router = _router(fake_translator)

    first = await router.handle(_translate_message("Hello"))
    second = await router.handle(_translate_message("Hello"))

    assert first == {"success": True, "translation": "HELLO", "cached": False}
    assert second == {"success": True, "translation": "HELLO", "cached": True}


@pytest.mark.asyncio
async def test_flat_payload_is_accepted(fake_translator):
    router = _router(fake_translator)

    response = await router.handle({"type": "TRANSLATE_TEXT", "text": "Hi", "targetLanguage": "ja"})

    assert response["success"] is True
    assert fake_translator.calls[0][2] == "ja"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["", "   ", None])
async def test_blank_text_is_rejected(fake_translator, text):
    router = _router(fake_translator)

    response = await router.handle(_translate_message(text))

    assert response == {"success": False, "error": "No text provided."}
    assert fake_translator.calls == []


@pytest.mark.asyncio
async def test_missing_api_key_message(fake_translator):
    router = _router(fake_translator, api_key=None)

    response = await router.handle(_translate_message("Hello"))

    assert response == {"success": False, "error": "Missing API key. Please configure in extension popup."}


@pytest.mark.asyncio
async def test_provider_error_is_reported_as_string(make_translator):
    translator = make_translator()

    async def failing(text, api_key, target_language="zh"):
        raise HttpError(500)

    translator.translate = failing
    router = _router(translator)

    response = await router.handle(_translate_message("Hello"))

    assert response["success"] is False
    assert response["error"].startswith("Doubao API error: 500")


@pytest.mark.asyncio
async def test_unexpected_error_is_not_leaked(make_translator):
    translator = make_translator()

    async def failing(text, api_key, target_language="zh"):
        raise KeyError("internal detail")

    translator.translate = failing
    router = _router(translator)

    response = await router.handle(_translate_message("Hello"))

    assert response == {"success": False, "error": "Translation failed"}


@pytest.mark.asyncio
async def test_clear_cache(fake_translator):
    router = _router(fake_translator)
    await router.handle(_translate_message("one"))
    await router.handle(_translate_message("two"))

    assert await router.handle({"type": "CLEAR_CACHE"}) == {"success": True, "clearedItems": 2}
    assert await router.handle({"type": "CLEAR_CACHE"}) == {"success": True, "clearedItems": 0}


@pytest.mark.asyncio
async def test_unknown_message_type(fake_translator):
    router = _router(fake_translator)

    response = await router.handle({"type": "PING"})

    assert response == {"success": False, "error": "Unknown message type: PING"}
