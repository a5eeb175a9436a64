"""Image generation adapter package.

Scope:
    Provides the text-to-image provider client and a small service that turns a
    placeholder description into an image URL for the generation coordinator.

Non-goals:
    - No image download, proxying or re-encoding; only URLs are handled.
    - No retry or timeout policy.
"""
