"""Provider configuration for the outbound image-generation call.

Architectural role:
    Centralizes provider selection and credential lookup for
    `placeholder_ai.image.client` and `placeholder_ai.image.service`.

Image call flow integration:
    - `service.generate_image` consumes `IMAGE_MODEL` when assembling the payload.
    - `client.send_image_request` consumes the provider endpoint map, the optional
      `IMAGE_CUSTOMER_ID` header and key resolution.

Key material:
    Provider and model are fixed at import. Keys are resolved on every call,
    so a rotated key is picked up without a restart.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# Active provider and model.
IMAGE_PROVIDER = os.getenv("IMAGE_PROVIDER", "oi_server")
IMAGE_MODEL = os.getenv("IMAGE_MODEL", "replicate/black-forest-labs/flux-1.1-pro")

# Some gateways bill per customer and expect this header on every call.
IMAGE_CUSTOMER_ID = os.getenv("IMAGE_CUSTOMER_ID")

# OpenAI-compatible chat-completions endpoints that answer with an image URL.
IMAGE_PROVIDERS = {

    "oi_server": {
        "url": os.getenv("IMAGE_API_URL", "https://oi-server.onrender.com/chat/completions"),
        "key_file": "config/oi_server.key"
    },

    "openrouter": {
        "url": "https://openrouter.ai/api/v1/chat/completions",
        "key_file": "config/openrouter.key"
    },

    "local": {
        "url": "http://127.0.0.1:8080/v1/chat/completions",
        "key_file": None
    }

}


def key_env_var(key_file):
    """Environment variable that overrides `key_file`, e.g. `OI_SERVER_API_KEY`."""
    stem = os.path.splitext(os.path.basename(key_file))[0]
    return f"{stem.upper()}_API_KEY"


def load_key(key_file):
    """Resolve the API key for a provider.

    The environment variable named by `key_env_var` wins; otherwise the key
    file is read relative to the working directory. Returns `None` for a
    provider without a key file, a missing file, or an empty value.
    """
    if not key_file:
        return None

    from_env = os.getenv(key_env_var(key_file))
    if from_env:
        return from_env.strip()

    try:
        with open(key_file, "r") as f:
            return f.read().strip() or None
    except FileNotFoundError:
        return None
