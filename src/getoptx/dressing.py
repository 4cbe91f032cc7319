"""
Quoting of output words so each one survives as a single shell word.
"""

GLOB_CHARACTERS = frozenset("*?[]")
BRACE_CHARACTERS = frozenset("{}")

# Characters that stay special inside double quotes.
_ESCAPED = {"\\": "\\\\", '"': '\\"', "$": "\\$", "`": "\\`"}


def needs_dressing(word: str, glob: bool = False, brace: bool = False) -> bool:
    """Return True if `word` would not come back as one word after eval."""
    if word == "":
        return True
    if any(ch.isspace() for ch in word):
        return True
    if glob and any(ch in GLOB_CHARACTERS for ch in word):
        return True
    if brace and any(ch in BRACE_CHARACTERS for ch in word):
        return True
    return False


def dress(word: str, glob: bool = False, brace: bool = False) -> str:
    """
    Wrap `word` in double quotes when it needs it.

    Args:
        word: The raw word.
        glob: Also quote words holding glob characters (``*?[]``).
        brace: Also quote words holding brace characters (``{}``).

    Returns:
        str: The word unchanged, or double-quoted with ``\\ " $ `` escaped.
    """
    if not needs_dressing(word, glob=glob, brace=brace):
        return word
    return '"' + "".join(_ESCAPED.get(ch, ch) for ch in word) + '"'


class Dresser:
    """Callable holding the quoting toggles chosen for one invocation."""

    def __init__(self, glob: bool = False, brace: bool = False) -> None:
        self.glob = glob
        self.brace = brace

    def __call__(self, word: str) -> str:
        return dress(word, glob=self.glob, brace=self.brace)
