from tokens import COMMA_MARKER, has_comma_marker


def postwalk(fn, tree):
    """Apply fn to every word of the tree, children before parents."""
    if isinstance(tree, tuple):
        return tuple(postwalk(fn, node) for node in tree)
    return fn(tree)


def get_commas_back(token):
    if has_comma_marker(token):
        return token[:-len(COMMA_MARKER)] + ","
    return token


def lower_case_token(token):
    return token.lower() if isinstance(token, str) else token


def normalize(tree):
    """
    Prepare an expanded tree for output: "_CO" suffixes become real commas,
    then every word is lower-cased. The marker is case-sensitive, so the comma
    pass has to run first.
    """
    return postwalk(lower_case_token, postwalk(get_commas_back, tree))


def flatten(tree):
    """Words of the tree in order, nested groups delimited by "(" and ")" tokens."""
    if isinstance(tree, str):
        return [tree]
    words = []
    for node in tree:
        if isinstance(node, tuple):
            words.append("(")
            words.extend(flatten(node))
            words.append(")")
        else:
            words.append(node)
    return words


def render(tree):
    """Printable text: groups in parentheses, stray commas glued to the word before."""
    text = ""
    for word in flatten(tree):
        if not text or text.endswith("(") or word in (")", ","):
            text += word
        else:
            text += " " + word
    return text
