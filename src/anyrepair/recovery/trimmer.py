"""locate the end of a json value and drop trailing noise"""

from typing import Optional

_CONTINUATION = {",", "{", "["}


def find_value_end(text: str) -> Optional[int]:
    """Index just past the closer that ends the leading JSON value.

    Single pass, string-aware, with separate brace and bracket depths. When
    both depths return to zero the next non-whitespace character decides:
    ``,`` ``{`` ``[`` or ``"`` means more values may follow, so the scan
    continues; end of input, punctuation, or trailing prose accepts the
    position. Returns ``None`` when no closer brings both depths back to
    zero.
    """
    brace = 0
    bracket = 0
    in_string = False
    escaped = False
    opened = False
    length = len(text)
    i = 0
    while i < length:
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
        elif ch == "{":
            brace += 1
            opened = True
        elif ch == "}":
            brace = max(brace - 1, 0)
        elif ch == "[":
            bracket += 1
            opened = True
        elif ch == "]":
            bracket = max(bracket - 1, 0)

        if opened and ch in "}]" and brace == 0 and bracket == 0:
            j = i + 1
            while j < length and text[j].isspace():
                j += 1
            if j >= length:
                return i + 1
            nxt = text[j]
            # a quote may open the next key of a value whose brace was lost
            if nxt not in _CONTINUATION and nxt != '"':
                return i + 1
        i += 1
    return None


def trim_trailing_content(text: str) -> str:
    """cut everything after the end of the leading value, if one is found."""
    end = find_value_end(text)
    if end is None:
        return text
    return text[:end]
