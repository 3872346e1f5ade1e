import re

_FENCED = re.compile(r"```(?:javascript|js)?\n?([\s\S]*?)```", re.IGNORECASE)
_INLINE = re.compile(r"`([^`]+)`")


def extract_code(content: str) -> str:
    """Script text from a chat message.

    Fenced blocks win (joined by a blank line), then inline code spans (one per
    line), then the whole message.
    """
    blocks = _FENCED.findall(content)
    if blocks:
        return "\n\n".join(blocks)
    spans = _INLINE.findall(content)
    if spans:
        return "\n".join(spans)
    return content
