"""
capview.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "layers_cmd",
    "serve_cmd",
    "view_cmd",
]
