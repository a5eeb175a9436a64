"""Image service used by the generation coordinator.

Role in pipeline:
    - Receives a description and target dimensions from the coordinator worker.
    - Builds the provider prompt and chat-completions payload.
    - Extracts and validates the image URL from the provider answer.

Async integration:
    `generate_image_async` runs the blocking HTTP call in a worker thread so the
    event loop keeps serving placeholder requests while a generation is in flight.
    Nothing in this module touches coordinator or cache state.

Error handling strategy:
    - Malformed payloads and non-URL content raise `ImageGenerationError`.
    - HTTP/transport exceptions from `client` are propagated unchanged.

Determinism:
    - Prompt and payload assembly are deterministic for fixed inputs/config.
    - Output content remains externally non-deterministic.
"""

import asyncio
from urllib.parse import urlparse

from placeholder_ai.image.client import ImageGenerationError, send_image_request
from placeholder_ai.image.provider_config import IMAGE_MODEL


def build_image_prompt(description: str, width: int, height: int) -> str:
    """Build the provider prompt for one placeholder description."""
    return (
        "Generate a high-quality image with these specifications:\n"
        f"Description: {description}\n"
        "Style: Professional, detailed, visually appealing\n"
        "Quality: High resolution, crisp details\n"
        "Composition: Well-balanced, aesthetically pleasing\n"
        f"Aspect Ratio: {width}:{height}\n"
        "\n"
        "Create an image that matches the description while being visually "
        "striking and professional."
    )


def is_absolute_url(value) -> bool:
    """Return True for absolute http(s) URLs with a network location."""
    if not isinstance(value, str):
        return False
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def extract_image_url(response: dict) -> str:
    """Pull the image URL out of a chat-completions response.

    Args:
        response: Parsed provider JSON.

    Returns:
        The trimmed URL from `choices[0].message.content`.

    Failure handling:
        - Missing `choices[0].message.content` -> `ImageGenerationError`
        - Content that is not an absolute http(s) URL -> `ImageGenerationError`
    """
    try:
        content = response["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        raise ImageGenerationError("Invalid response format from AI service")

    if not isinstance(content, str) or not content.strip():
        raise ImageGenerationError("Invalid response format from AI service")

    image_url = content.strip()
    if not is_absolute_url(image_url):
        raise ImageGenerationError("Invalid image URL received from AI service")

    return image_url


def generate_image(description: str, width: int, height: int) -> str:
    """Generate an image for `description` and return its URL (blocking).

    Args:
        description: Free-text description supplied by the placeholder caller.
        width: Requested width, only forwarded as aspect ratio guidance.
        height: Requested height.

    Returns:
        Absolute URL of the generated image.
    """
    payload = {
        "model": IMAGE_MODEL,
        "messages": [
            {
                "role": "user",
                "content": build_image_prompt(description, width, height),
            }
        ],
    }
    return extract_image_url(send_image_request(payload))


async def generate_image_async(description: str, width: int, height: int) -> str:
    """Awaitable wrapper around `generate_image` for the coordinator worker."""
    return await asyncio.to_thread(generate_image, description, width, height)
