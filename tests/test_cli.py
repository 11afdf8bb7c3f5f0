import cli_courtroom
from courtroom.models import CaseStatus


def scripted(lines):
    it = iter(lines)

    def get_user_input(prompt_text):
        try:
            return next(it)
        except StopIteration:
            raise EOFError

    return get_user_input


def test_cli_trial(court, capsys):
    inputs = scripted([
        "Kapoor vs Singh",
        "",
        "arg plaintiff The cheque bounced.",
        "arg defense It was never presented.",
        "verdict",
        "arg plaintiff",
        "surrender defense",
        "arg plaintiff Too late.",
        "quit",
    ])

    assert cli_courtroom.main(court=court, get_user_input=inputs) == 0

    out = capsys.readouterr().out
    assert "Recorded initial argument for the plaintiff." in out
    assert "=== INITIAL DECISION ===" in out
    assert "Rejected: Argument text must not be empty" in out
    assert "Rejected: Case 1 is closed (surrendered)" in out

    snap = court.list_cases()[0]
    assert snap.case_type == "civil"
    assert snap.status == CaseStatus.surrendered
    assert snap.argument_count == 2


def test_cli_rejects_empty_title(court, capsys):
    assert cli_courtroom.main(court=court, get_user_input=scripted(["", ""])) == 1
    assert "Rejected: title is required" in capsys.readouterr().out
