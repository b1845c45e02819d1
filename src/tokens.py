COMMA_MARKER = "_CO"


def is_reference(token):
    """True iff token is a word (not a nested group) written in upper case."""
    return isinstance(token, str) and token == token.upper()


def has_comma_marker(token):
    return isinstance(token, str) and token.endswith(COMMA_MARKER)


def strip_comma_marker(token):
    """Split a token into the name used for lookup and whether it carried a comma.

    >>> strip_comma_marker("SAUCE_CO")
    ('SAUCE', True)
    >>> strip_comma_marker("SAUCE")
    ('SAUCE', False)
    """
    if has_comma_marker(token):
        return token[:-len(COMMA_MARKER)], True
    return token, False
