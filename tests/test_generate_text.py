"""Tests for the driver, the grammar validator, the self-test loop and corpus export."""

import json

import pytest
from tokenizers import Tokenizer

from expander import Expander
from generate_text import (
    DEFAULT_PROBABILITY,
    build_fixed_tokenizer,
    check_grammar,
    dinner,
    generate,
    generate_corpus,
    get_registry,
    grammar_to_cfg,
    main,
    parse_args,
    sample_many,
    validate,
)
from normalizer import flatten, render
from registry import Registry


class TestGenerate:

    def test_empty_seed(self):
        assert generate(()) == ()

    def test_zero_probability_returns_the_name(self):
        assert generate(("MACARONI",), probability=0) == ("macaroni",)

    def test_bare_name_is_not_expanded(self):
        assert generate("MACARONI") == "macaroni"

    def test_unknown_grammar(self):
        with pytest.raises(ValueError):
            get_registry("Lasagna")

    def test_reproducible_with_seed(self):
        first = dinner("GNOCCHI", probability=0.9, rng_seed=7)
        second = dinner("GNOCCHI", probability=0.9, rng_seed=7)
        assert first == second

    def test_accepts_list_seed(self):
        assert generate(["MACARONI", ["and", "CHEESE"]], probability=0) == (
            "macaroni", ("and", "cheese"))

    def test_default_probability_terminates(self):
        tree = dinner("GNOCCHI", rng_seed=11)
        words = flatten(tree)
        assert words
        assert all(word == word.lower() for word in words)

    def test_self_reference_repeats_and_y(self):
        """X -> (X and Y): one x followed by a bounded run of "and y"."""
        registry = get_registry("SelfReference")
        for seed in range(20):
            tree = dinner("X", registry, DEFAULT_PROBABILITY, rng_seed=seed)
            assert tree[0] == "x"
            tail = tree[1:]
            assert len(tail) % 2 == 0
            assert tail == ("and", "y") * (len(tail) // 2)
            assert len(tail) // 2 < 64

    def test_comma_reference_gets_comma_after_normalization(self, scripted_draws):
        registry = Registry.from_table({
            "MEAL": ["SAUCE_CO", "typical"],
            "SAUCE": ["shad", "and", "unusual"],
        })
        raw = Expander(registry, rng=scripted_draws([0.0, 0.0])).expand(("MEAL",), 0.9)
        assert raw == ("shad", "and", "unusual", "_CO", "typical")

        tree = dinner("MEAL", registry, 0.9, rng=scripted_draws([0.0, 0.0]))
        assert tree == ("shad", "and", "unusual", ",", "typical")
        assert render(tree) == "shad and unusual, typical"


class TestValidate:

    def test_cfg_terminals(self):
        cfg = grammar_to_cfg(get_registry("Oodles"))
        terminals = {sym for prod in cfg.productions() for sym in prod.rhs()
                     if isinstance(sym, str)}
        assert {"naples,", ",", "(", ")", "macaroni", "all!", "that's"} <= terminals

    @pytest.mark.parametrize("name", ["GNOCCHI", "PASTA", "ESPRESSO", "RHUBARB"])
    def test_generated_output_derives_from_grammar(self, name):
        registry = get_registry("Oodles")
        for seed in range(3):
            tree = dinner(name, registry, 0.6, rng_seed=seed)
            assert validate(" ".join(flatten(tree)), "Oodles")

    def test_unexpanded_name_is_valid(self):
        assert validate(["macaroni"], "Oodles")

    def test_rejects_unknown_words(self):
        assert not validate("pizza with pineapple", "Oodles")

    def test_rejects_wrong_order(self):
        assert not validate("macaroni macaroni", "Oodles")

    def test_with_explicit_seed(self):
        seed = ("MACARONI", "and", "GARLIC")
        tree = generate(seed, get_registry("Oodles"), 0.6, rng_seed=4)
        assert validate(flatten(tree), "Oodles", seed=seed)
        assert validate(["macaroni"], "Oodles", seed="MACARONI")

    def test_unresolved_reference_stays_a_word(self):
        tree = dinner("X", get_registry("SelfReference"), 0.9, rng_seed=2)
        assert validate(flatten(tree), "SelfReference")

    def test_follows_the_registry_the_expander_reads(self):
        """A production registered twice keeps its last body, and so does the parser."""
        registry = Registry()
        registry.register("A", ["x"])
        registry.register("A", ["y"])
        registry.freeze()
        terminals = {sym for prod in grammar_to_cfg(registry).productions()
                     for sym in prod.rhs() if isinstance(sym, str)}
        assert "y" in terminals
        assert "x" not in terminals
        assert validate(["y"], registry)
        assert not validate(["x"], registry)


class TestCheckGrammar:

    def test_runs_every_registered_production(self):
        lengths = check_grammar("MutualRecursion", trials=3, probability=0.9, rng_seed=0)
        assert set(lengths) == {"PING", "PONG"}
        for runs in lengths.values():
            assert len(runs) == 3
            assert min(runs) >= 1

    def test_sample_many(self):
        trees = sample_many("Oodles", None, 5, probability=0.5, rng_seed=3)
        assert len(trees) == 5
        assert all(isinstance(tree, tuple) for tree in trees)


class TestCorpus:

    def test_tokenizer_covers_grammar_words(self, tmp_path):
        tokenizer = build_fixed_tokenizer("Oodles", str(tmp_path / "tokenizer.json"))
        assert tokenizer.token_to_id("naples,") is not None
        encoding = tokenizer.encode("macaroni and cheddar, ( a )")
        assert encoding.tokens[0] == "<|bos|>"
        assert encoding.tokens[-1] == "<|eos|>"
        assert "<|unk|>" not in encoding.tokens

    def test_generate_corpus_writes_dataset_and_tokenizer(self, tmp_path):
        out_dir = tmp_path / "corpus"
        sequences = generate_corpus("Oodles", "GARLIC", 20, 0.5, str(out_dir), rng_seed=0)
        assert len(sequences) == 20

        with open(out_dir / "full.jsonl") as f:
            rows = [json.loads(line) for line in f]
        assert len(rows) == 20
        assert rows[0]["sequence"].split()[0] in ("garlic", "green")
        assert [row["sequence"] for row in rows] == sequences

        tokenizer = Tokenizer.from_file(str(out_dir / "tokenizer.json"))
        for seq in sequences:
            assert "<|unk|>" not in tokenizer.encode(seq).tokens
        assert sorted(p.name for p in out_dir.iterdir()) == ["full.jsonl", "tokenizer.json"]


class TestCli:

    def test_rejects_probability_one(self):
        with pytest.raises(SystemExit):
            parse_args(["--probability", "1.0"])

    def test_single_start_symbol(self, capsys):
        main(["--grammar", "SelfReference", "--start_symbol", "X",
              "--probability", "0.5", "--seed", "1"])
        out = capsys.readouterr().out
        assert out.startswith("x")

    def test_checks_whole_grammar(self, capsys):
        main(["--grammar", "MutualRecursion", "--trials", "2", "--probability", "0.9",
              "--seed", "0"])
        out = capsys.readouterr().out
        assert "PING: 2 expansions" in out
        assert "PONG: 2 expansions" in out
