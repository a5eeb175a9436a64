"""Chat-completions HTTP client for the image provider.

Request assembly:
    The active provider entry from `image.provider_config` supplies the URL.
    A bearer token is attached when the provider declares a key file, and the
    `customerId` header when `IMAGE_CUSTOMER_ID` is set.

Retry behavior:
    No retry loop and no request timeout. A call either completes or fails once;
    the generation coordinator records the failure.

Error handling strategy:
    - Misconfiguration and HTTP failures raise exceptions for upstream handling.
    - Transport errors from `requests` propagate unchanged.

Security considerations:
    - Exceptions carry the HTTP status line but never the API key.
"""

import logging

import requests

from placeholder_ai.image.provider_config import (
    IMAGE_CUSTOMER_ID,
    IMAGE_PROVIDER,
    IMAGE_PROVIDERS,
    key_env_var,
    load_key,
)


logger = logging.getLogger(__name__)


class ImageGenerationError(RuntimeError):
    """Raised when the provider answers but the answer is unusable."""


def _provider_endpoint():
    """Return `(url, headers)` for the active provider."""
    provider = IMAGE_PROVIDERS.get(IMAGE_PROVIDER)
    if provider is None:
        raise ValueError(f"Unknown image provider: {IMAGE_PROVIDER}")

    headers = {"Content-Type": "application/json"}

    key_file = provider.get("key_file")
    if key_file:
        api_key = load_key(key_file)
        if api_key is None:
            raise RuntimeError(
                f"No API key for image provider {IMAGE_PROVIDER!r}: "
                f"set {key_env_var(key_file)} or create {key_file}"
            )
        headers["Authorization"] = f"Bearer {api_key}"

    if IMAGE_CUSTOMER_ID:
        headers["customerId"] = IMAGE_CUSTOMER_ID

    return provider["url"], headers


def send_image_request(payload: dict) -> dict:
    """POST a chat-completions payload to the active image provider.

    Args:
        payload: Chat-completions JSON payload (model + messages).

    Returns:
        Parsed JSON body of a 200 response.

    Error handling:
        - Unknown provider -> `ValueError`
        - No API key for a provider that needs one -> `RuntimeError`
        - Any status other than 200 -> `ImageGenerationError`
    """
    url, headers = _provider_endpoint()

    logger.debug("POST %s (provider=%s)", url, IMAGE_PROVIDER)
    response = requests.post(url, json=payload, headers=headers)

    if response.status_code != 200:
        raise ImageGenerationError(
            f"AI image generation failed: {response.status_code} {response.reason}"
        )
    return response.json()
