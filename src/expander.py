import logging

import numpy as np

from tokens import COMMA_MARKER, is_reference, strip_comma_marker

logger = logging.getLogger(__name__)

# stays well below CPython's default recursion limit
MAX_DEPTH = 500


def decay(probability):
    """Probability of expanding one level further down."""
    return probability * probability


class Expander:
    """
    Randomly substitutes acronyms with their (recursively expanded) bodies.

    Args:
        registry: frozen Registry the acronyms are looked up in
        rng: anything with a random() method returning floats in [0, 1);
            defaults to a fresh numpy Generator seeded with `seed`
        seed: seed for the default generator
        max_depth: call depth at which the remaining subtree is left as it is
    """

    def __init__(self, registry, rng=None, seed=None, max_depth=MAX_DEPTH):
        self.registry = registry
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.max_depth = max_depth
        self.substitutions = 0
        self.depth_limit_hits = 0

    def resolve(self, token):
        name, had_comma = strip_comma_marker(token)
        body = self.registry.lookup(name)
        if body is None:
            # unknown acronym: splice the token back in unchanged
            logger.debug("No production named %s, keeping it literally", name)
            return (token,)
        if had_comma:
            return body + (COMMA_MARKER,)
        return body

    def expand(self, tree, probability, depth=0):
        if isinstance(tree, str):
            return tree
        if not isinstance(tree, tuple):
            raise TypeError(f"Cannot expand {type(tree).__name__}: {tree!r}")
        if not tree:
            return tree
        if depth >= self.max_depth:
            self.depth_limit_hits += 1
            logger.warning("Depth limit %d reached, leaving %d nodes unexpanded",
                           self.max_depth, len(tree))
            return tree

        # siblings after a reference keep the probability, after anything else it decays
        expanded = []
        for node in tree:
            if node == COMMA_MARKER:
                # comma left behind by a substitution, nothing to look up
                expanded.append(node)
            elif is_reference(node):
                if self.rng.random() < probability:
                    self.substitutions += 1
                    expanded.extend(self.expand(self.resolve(node), decay(probability), depth + 1))
                else:
                    expanded.append(node)
            else:
                probability = decay(probability)
                expanded.append(self.expand(node, probability, depth + 1))
        return tuple(expanded)


def expand(tree, probability, registry, rng=None, seed=None):
    return Expander(registry, rng=rng, seed=seed).expand(tree, probability)
