import logging
from types import MappingProxyType

logger = logging.getLogger(__name__)


def freeze_tree(tree):
    """Turn a declared body (nested lists of words) into nested tuples."""
    if isinstance(tree, str):
        return tree
    if isinstance(tree, (list, tuple)):
        return tuple(freeze_tree(node) for node in tree)
    raise TypeError(f"Token trees hold words and nested groups, got {type(tree).__name__}: {tree!r}")


class Registry:
    """Production name -> body, written once at startup and read-only afterwards."""

    def __init__(self):
        self._bodies = {}
        self._frozen = False

    @classmethod
    def from_table(cls, table):
        registry = cls()
        for name, body in table.items():
            registry.register(name, body)
        return registry.freeze()

    def register(self, name, body):
        if self._frozen:
            raise ValueError(f"Cannot register {name!r}: registry is frozen")
        if name in self._bodies:
            logger.debug("Overwriting production %s", name)
        self._bodies[name] = freeze_tree(body)

    def freeze(self):
        self._frozen = True
        self._bodies = MappingProxyType(dict(self._bodies))
        return self

    @property
    def frozen(self):
        return self._frozen

    def lookup(self, name):
        return self._bodies.get(name)

    def names(self):
        """Registered production names in declaration order."""
        return list(self._bodies)

    def items(self):
        return self._bodies.items()

    def __contains__(self, name):
        return name in self._bodies

    def __len__(self):
        return len(self._bodies)

    def __repr__(self):
        state = "frozen" if self._frozen else "open"
        return f"Registry({len(self)} productions, {state})"
