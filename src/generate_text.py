import os
import json
import logging
import argparse

import numpy as np
from tokenizers import Tokenizer, models, pre_tokenizers
from tokenizers.processors import TemplateProcessing
from nltk.grammar import CFG, Nonterminal, Production
from nltk.parse import ChartParser

from def_acronyms import GRAMMARS
from expander import Expander
from normalizer import flatten, get_commas_back, lower_case_token, normalize, render
from registry import Registry, freeze_tree
from tokens import is_reference, strip_comma_marker

logger = logging.getLogger(__name__)

DEFAULT_GRAMMAR = "Oodles"
# close to 1 for long, richly nested output; still < 1 so expansion stops
DEFAULT_PROBABILITY = 0.99999
DATASET_SIZE = 1000
MAX_VALIDATION_LENGTH = 200
SPECIAL_TOKENS = ["<|bos|>", "<|eos|>", "<|unk|>"]

REGISTRIES = {name: Registry.from_table(tbl) for name, tbl in GRAMMARS.items()}


def get_registry(grammar_name):
    if grammar_name not in REGISTRIES:
        raise ValueError(f"Unknown grammar: {grammar_name}")
    return REGISTRIES[grammar_name]


def generate(seed, registry=None, probability=DEFAULT_PROBABILITY, rng=None, rng_seed=None):
    """
    Expand a seed and normalize the result.

    A bare production name is a single word and comes back as it is (lower-cased);
    use dinner() or a one-element seed such as ("GNOCCHI",) to expand it.
    """
    if registry is None:
        registry = get_registry(DEFAULT_GRAMMAR)
    expander = Expander(registry, rng=rng, seed=rng_seed)
    expanded = expander.expand(freeze_tree(seed), probability)
    logger.debug("Expanded %r with %d substitutions", seed, expander.substitutions)
    return normalize(expanded)


def dinner(name, registry=None, probability=DEFAULT_PROBABILITY, rng=None, rng_seed=None):
    return generate((name,), registry, probability, rng=rng, rng_seed=rng_seed)


def _normalized(token):
    return lower_case_token(get_commas_back(token))


def _body_rhs(body, registry):
    rhs = []
    for node in body:
        if isinstance(node, (list, tuple)):
            rhs.append("(")
            rhs.extend(_body_rhs(node, registry))
            rhs.append(")")
        elif is_reference(node) and strip_comma_marker(node)[0] in registry:
            rhs.append(Nonterminal(node))
        else:
            rhs.append(_normalized(node))
    return rhs


def grammar_to_cfg(registry, seed=None):
    """
    nltk CFG generating every normalized, flattened output of the expander
    running over `registry`.

    Each acronym either stays a word or is replaced by its body; with the comma
    marker that becomes the word with a comma, or the body followed by ",".
    Without a seed, the start symbol derives any single acronym.
    """
    start = Nonterminal("START")
    productions = []
    for name, body in registry.items():
        expanded = Nonterminal(f"{name}/body")
        productions.append(Production(expanded, _body_rhs(body, registry)))
        productions.append(Production(Nonterminal(name), [expanded]))
        productions.append(Production(Nonterminal(name), [_normalized(name)]))
        comma = Nonterminal(name + "_CO")
        productions.append(Production(comma, [expanded, ","]))
        productions.append(Production(comma, [_normalized(name) + ","]))
    if seed is None:
        for name in registry.names():
            productions.append(Production(start, [Nonterminal(name)]))
    elif isinstance(seed, str):
        # a bare word is never expanded
        productions.append(Production(start, [_normalized(seed)]))
    else:
        productions.append(Production(start, _body_rhs(seed, registry)))
    return CFG(start, productions)


PARSERS = {name: ChartParser(grammar_to_cfg(reg)) for name, reg in REGISTRIES.items()}


def validate(sequence, grammar, seed=None):
    """
    True iff sequence (list or space-string) derives from grammar, given
    either by name or as the Registry the expansion ran over.
    """
    tokens = sequence.split() if isinstance(sequence, str) else list(sequence)
    if isinstance(grammar, str) and seed is None:
        parser = PARSERS[grammar]
    else:
        registry = get_registry(grammar) if isinstance(grammar, str) else grammar
        parser = ChartParser(grammar_to_cfg(registry, seed))
    try:
        return any(parser.parse(tokens))
    except ValueError as err:          # token not covered by the grammar
        logger.warning("[VALIDATION ERROR - %s] %s: %s", grammar, tokens, err)
        return False


def count_valid_sequences(sequences, grammar_name):
    checked = [seq for seq in sequences if len(seq.split()) <= MAX_VALIDATION_LENGTH]
    valid = sum(validate(seq, grammar_name) for seq in checked)
    total = len(checked)
    skipped = len(sequences) - total
    if total:
        print(f"[VALIDITY] {valid}/{total} sequences valid ({100 * valid / total:.2f}%), "
              f"{skipped} too long to check")
    else:
        print(f"[VALIDITY] nothing checked, all {skipped} sequences too long")
    return valid, total


def check_grammar(grammar_name, trials=10, probability=DEFAULT_PROBABILITY, rng_seed=None):
    """Expand every registered acronym `trials` times; returns output lengths per acronym."""
    registry = get_registry(grammar_name)
    rng = np.random.default_rng(rng_seed)
    lengths = {}
    for name in registry.names():
        lengths[name] = [len(flatten(dinner(name, registry, probability, rng=rng)))
                         for _ in range(trials)]
        logger.info("%s: mean length %.1f over %d runs", name, np.mean(lengths[name]), trials)
    return lengths


def sample_many(grammar_name, start_symbol, n, probability=DEFAULT_PROBABILITY, rng_seed=None):
    registry = get_registry(grammar_name)
    rng = np.random.default_rng(rng_seed)
    names = registry.names()
    trees = []
    for _ in range(n):
        name = start_symbol if start_symbol else names[rng.integers(len(names))]
        trees.append(dinner(name, registry, probability, rng=rng))
    return trees


def save_dataset(trees, out_dir):
    os.makedirs(out_dir, exist_ok=True)
    with open(f"{out_dir}/full.jsonl", "w") as f:
        for tree in trees:
            f.write(json.dumps({
                "sequence": " ".join(flatten(tree)),
                "text": render(tree)
            }) + "\n")


def build_fixed_tokenizer(grammar_name, tok_path, special_tokens=None):
    """
    Create a WordLevel tokenizer whose vocab = exactly the words the grammar
    can produce, plus the special tokens. Save it to tok_path and return it.
    """
    if special_tokens is None:
        special_tokens = SPECIAL_TOKENS

    terminals = set()
    for prod in grammar_to_cfg(get_registry(grammar_name)).productions():
        for sym in prod.rhs():
            if isinstance(sym, str):
                terminals.add(sym)

    vocab = {}
    for tok in special_tokens:
        vocab[tok] = len(vocab)
    for term in sorted(terminals):
        vocab[term] = len(vocab)

    tokenizer = Tokenizer(models.WordLevel(vocab=vocab, unk_token="<|unk|>"))
    # words keep their punctuation ("naples,", "that's")
    tokenizer.pre_tokenizer = pre_tokenizers.WhitespaceSplit()
    tokenizer.post_processor = TemplateProcessing(
        single="<|bos|> $A <|eos|>",
        special_tokens=[
            ("<|bos|>", vocab["<|bos|>"]),
            ("<|eos|>", vocab["<|eos|>"]),
        ],
    )

    tok_dir = os.path.dirname(tok_path)
    if tok_dir:
        os.makedirs(tok_dir, exist_ok=True)
    tokenizer.save(tok_path)
    logger.info("Tokenizer with %d entries saved to %s", len(vocab), tok_path)
    return tokenizer


def generate_corpus(grammar, start_symbol, dataset_size, probability, out_dir,
                    rng_seed=None, check=False):
    # 1) generate
    trees = sample_many(grammar, start_symbol, dataset_size, probability, rng_seed)
    sequences = [" ".join(flatten(tree)) for tree in trees]

    # 2) save dataset
    save_dataset(trees, out_dir)

    # 3) word-level tokenisation
    build_fixed_tokenizer(grammar, f"{out_dir}/tokenizer.json")
    print(f"Saved {len(sequences)} expansions from '{grammar}' to {out_dir}")

    if check:
        count_valid_sequences(sequences, grammar)
    return sequences


def configure_logging(log_level=None):
    level_name = (log_level or os.getenv("OODLES_LOG_LEVEL", "warning")).lower()
    level_map = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warn": logging.WARNING,
        "warning": logging.WARNING,
        "error": logging.ERROR,
    }
    logging.basicConfig(level=level_map.get(level_name, logging.WARNING),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Randomly expand recursive acronyms into text.")
    parser.add_argument("--grammar", choices=sorted(GRAMMARS), default=DEFAULT_GRAMMAR,
                        help="Name of the grammar to use.")
    parser.add_argument("--start_symbol", type=str, default=None,
                        help="Acronym to expand (default: every acronym in turn).")
    parser.add_argument("--probability", "-p", type=float, default=DEFAULT_PROBABILITY,
                        help="Initial expansion probability, in [0, 1).")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducibility")
    parser.add_argument("--trials", type=int, default=10,
                        help="Expansions per acronym when checking the whole grammar.")
    parser.add_argument("--dataset_size", "-n", type=int, default=DATASET_SIZE,
                        help="Number of expansions to write with --out_dir.")
    parser.add_argument("--out_dir", type=str, default=None,
                        help="Write a tokenised corpus here instead of printing.")
    parser.add_argument("--validate", action="store_true",
                        help="Check that outputs derive from the grammar.")
    parser.add_argument("--log-level", dest="log_level", default=None,
                        choices=["debug", "info", "warn", "warning", "error"])
    args = parser.parse_args(argv)
    if not 0 <= args.probability < 1:
        parser.error("--probability must be in [0, 1)")
    return args


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.log_level)

    if args.out_dir:
        generate_corpus(args.grammar, args.start_symbol, args.dataset_size, args.probability,
                        args.out_dir, rng_seed=args.seed, check=args.validate)
    elif args.start_symbol:
        tree = dinner(args.start_symbol, get_registry(args.grammar), args.probability,
                      rng_seed=args.seed)
        print(render(tree))
        if args.validate:
            count_valid_sequences([" ".join(flatten(tree))], args.grammar)
    else:
        lengths = check_grammar(args.grammar, args.trials, args.probability, args.seed)
        for name, runs in lengths.items():
            print(f"{name}: {args.trials} expansions, mean length {np.mean(runs):.1f}, "
                  f"max {max(runs)}")


if __name__ == "__main__":
    main()
