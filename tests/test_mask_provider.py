from __future__ import annotations

import base64

import numpy as np
import pytest

from dish_cutout.config import MAX_MASK_RETRIES
from dish_cutout.errors import DecodeFailure
from dish_cutout.io import decode_rgba, encode_png


class _FakeResp:
    def __init__(self, payload: dict):
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> dict:
        return self._payload


def _mask_png() -> bytes:
    m = np.zeros((24, 32), dtype=np.uint8)
    m[6:18, 8:24] = 255
    return encode_png(m)


def test_request_dish_mask_returns_decoded_png(monkeypatch):
    from dish_cutout import mask_provider as provider_mod

    monkeypatch.setenv("MASK_API_KEY", "test-key")
    monkeypatch.setenv("MASK_BASE_URL", "https://example.test/")
    seen = {}

    def _fake_post(url, headers=None, data=None, files=None, timeout=None):
        seen["url"] = url
        seen["auth"] = headers["Authorization"]
        seen["size"] = data["size"]
        seen["image"] = files["image"][0]
        return _FakeResp({"data": [{"b64_json": base64.b64encode(_mask_png()).decode("utf-8")}]})

    monkeypatch.setattr(provider_mod.requests, "post", _fake_post)

    png = provider_mod.request_dish_mask(b"source-bytes", 32, 24)

    assert seen["url"] == "https://example.test/v1/images/edits"
    assert seen["auth"] == "Bearer test-key"
    assert seen["size"] == "32x24"
    assert seen["image"] == "input.png"
    arr = decode_rgba(png)
    assert arr.shape == (24, 32, 4)
    assert arr[12, 16, 0] == 255


def test_request_dish_mask_retries_then_fails(monkeypatch):
    from dish_cutout import mask_provider as provider_mod

    monkeypatch.setenv("MASK_API_KEY", "test-key")
    calls = {"n": 0}

    def _fake_post(url, headers=None, data=None, files=None, timeout=None):
        calls["n"] += 1
        return _FakeResp({"data": []})

    monkeypatch.setattr(provider_mod.requests, "post", _fake_post)

    with pytest.raises(DecodeFailure):
        provider_mod.request_dish_mask(b"source-bytes", 32, 24)
    assert calls["n"] == MAX_MASK_RETRIES + 1


def test_request_dish_mask_rejects_corrupt_payload(monkeypatch):
    from dish_cutout import mask_provider as provider_mod

    monkeypatch.setenv("MASK_API_KEY", "test-key")
    garbage = base64.b64encode(b"definitely not an image").decode("utf-8")
    monkeypatch.setattr(
        provider_mod.requests,
        "post",
        lambda url, headers=None, data=None, files=None, timeout=None: _FakeResp({"data": [{"b64_json": garbage}]}),
    )

    with pytest.raises(DecodeFailure):
        provider_mod.request_dish_mask(b"source-bytes", 32, 24)


def test_missing_api_key_is_a_decode_failure(monkeypatch):
    from dish_cutout import mask_provider as provider_mod

    monkeypatch.delenv("MASK_API_KEY", raising=False)

    def _never(*_a, **_k):
        raise AssertionError("no request without a key")

    monkeypatch.setattr(provider_mod.requests, "post", _never)
    with pytest.raises(DecodeFailure):
        provider_mod.request_dish_mask(b"source-bytes", 32, 24)


@pytest.mark.parametrize(
    "payload",
    [
        {"data": ["oops"]},
        ["not", "a", "dict"],
        {"data": {"b64_json": "x"}},
        {"data": [{"b64_json": 123}]},
        {},
    ],
)
def test_malformed_reply_is_a_decode_failure(monkeypatch, payload):
    from dish_cutout import mask_provider as provider_mod

    monkeypatch.setenv("MASK_API_KEY", "test-key")
    monkeypatch.setattr(
        provider_mod.requests,
        "post",
        lambda url, headers=None, data=None, files=None, timeout=None: _FakeResp(payload),
    )

    with pytest.raises(DecodeFailure):
        provider_mod.request_dish_mask(b"source-bytes", 32, 24)
