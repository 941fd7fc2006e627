import pytest

import sokoban_harness
from sokoban_harness.harness import batch
from sokoban_harness.harness.config import HarnessConfig
from sokoban_harness.harness.outcome import Failed, FailureReason, Passed

from conftest import SMALL, answering_solver

CORPUS = f""";LEVEL 1
{SMALL}
;LEVEL 2
#####
# $.#
#####
"""


@pytest.fixture
def corpus_file(tmp_path):
    path = tmp_path / "two.data"
    path.write_text(CORPUS, encoding="utf-8")
    return path


def test_two_level_corpus(corpus_file, tmp_path, capsys):
    config = HarnessConfig(
        max_workers=1,
        timeout=5.0,
        solver_command=answering_solver("R D"),
        log_dir=str(tmp_path / "logs"),
    )
    result = batch.run(config, corpus_path=corpus_file)

    assert (result.executed, result.passed, result.failed) == (2, 1, 1)
    assert isinstance(result.get(1), Passed)
    level_2 = result.get(2)
    assert isinstance(level_2, Failed)
    assert level_2.reason is FailureReason.PARSE

    logs = list((tmp_path / "logs" / "two").glob("*.log"))
    assert len(logs) == 1
    log_text = logs[0].read_text(encoding="utf-8")
    assert "level 1: passed" in log_text
    assert "Board metrics by category:" in log_text

    out = capsys.readouterr().out
    assert "Passed:    1" in out
    assert "Failed:    1" in out


def test_max_instances(corpus_file, tmp_path):
    config = HarnessConfig(
        max_workers=2,
        max_instances=1,
        solver_command=answering_solver("RD"),
        log_dir=str(tmp_path / "logs"),
    )
    result = batch.run(config, corpus_path=corpus_file)
    assert (result.total, result.passed) == (1, 1)


def test_main_usage(monkeypatch):
    monkeypatch.setattr(sokoban_harness, "argv", ["sokoban-harness", "a", "b"])
    with pytest.raises(SystemExit) as exc:
        sokoban_harness.main()
    assert exc.value.code == 1
