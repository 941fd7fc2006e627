import pytest

from sokoban_harness.corpus import CorpusError, PuzzleInstance, load_corpus, parse_corpus

CORPUS = """Levels from the test set
;LEVEL 1
#####
#@$.#
#####
;LEVEL 2
####
#@ #
####
;LEVEL 10
#+*#
"""


def test_parse_corpus_sections():
    instances = parse_corpus(CORPUS)
    assert [i.identifier for i in instances] == [1, 2, 10]
    assert instances[0].raw_text == "\n#####\n#@$.#\n#####\n"
    assert instances[2].raw_text == "\n#+*#\n"


def test_parse_corpus_strips_carriage_returns():
    instances = parse_corpus(CORPUS.replace("\n", "\r\n"))
    assert all("\r" not in i.raw_text for i in instances)
    assert instances[1].raw_text == "\n####\n#@ #\n####\n"


def test_parse_corpus_without_markers():
    assert parse_corpus("#@$.#\n") == []


def test_duplicate_level_numbers():
    with pytest.raises(CorpusError):
        parse_corpus(";LEVEL 1\n#@.#\n;LEVEL 1\n#@.#\n")


def test_solver_input_ends_with_terminator():
    instance = PuzzleInstance(1, "\n#@$.#\n\n\n")
    assert instance.solver_input() == "#@$.#\n;\n"


def test_load_corpus(tmp_path):
    path = tmp_path / "test.data"
    path.write_text(CORPUS, encoding="utf-8")
    assert len(load_corpus(path)) == 3
    assert [i.identifier for i in load_corpus(path, max_instances=2)] == [1, 2]


def test_load_corpus_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_corpus(tmp_path / "missing.data")


def test_load_corpus_without_levels(tmp_path):
    path = tmp_path / "empty.data"
    path.write_text("no levels here\n", encoding="utf-8")
    with pytest.raises(CorpusError):
        load_corpus(path)
