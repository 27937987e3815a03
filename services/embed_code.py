# services/embed_code.py - iframe snippet pointing at the embed viewer
from markupsafe import escape

FRAME_STYLE = "border-radius: 8px; box-shadow: 0 4px 12px rgba(0, 0, 0, 0.1);"


def build_embed_snippet(viewer_url: str, width: str = "100%", height: str = "600px") -> str:
    """Return the HTML a third-party page pastes to embed a quiz."""
    return (
        "<iframe \n"
        f'  src="{escape(viewer_url)}" \n'
        f'  width="{escape(width)}" \n'
        f'  height="{escape(height)}" \n'
        '  frameborder="0"\n'
        f'  style="{FRAME_STYLE}"\n'
        '  allow="clipboard-write"\n'
        "></iframe>"
    )
