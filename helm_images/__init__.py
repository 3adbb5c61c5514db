"""
helm-images lists the container images used by a helm chart or release.
"""

__all__ = [
    "manifest",
    "image",
    "helm",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
