import sys
from pathlib import Path
from sqlmodel import SQLModel, create_engine
from courtroom import config, services
from courtroom.engine import CaseEngine
from courtroom.errors import CourtroomError

HELP = """Commands:
  arg <plaintiff|defense> <text>     submit an argument
  file <plaintiff|defense> <path>    file a document (pdf, docx, image or text)
  verdict [note]                     ask the AI judge for the next decision
  surrender <plaintiff|defense>      surrender the case
  status                             show the case state
  quit
"""


def get_user_input(prompt_text):
    return input(prompt_text)


def print_status(court, case_id):
    snap = court.get_case(case_id)
    print(
        f"[case {snap.id}] {snap.title} | phase={snap.phase.value} status={snap.status.value} "
        f"arguments={snap.argument_count} verdicts={snap.verdict_count} closed={snap.closed}"
    )


def run_command(court, case_id, line):
    """Run one command line; returns False when the session should end."""
    cmd, _, rest = line.strip().partition(" ")
    cmd = cmd.lower()
    if cmd in ("quit", "exit"):
        return False
    if cmd == "arg":
        side, _, text = rest.partition(" ")
        arg = court.submit_argument(case_id, side, text)
        print(f"Recorded {arg.argument_type.value} argument for the {arg.side.value}.")
    elif cmd == "file":
        side, _, path = rest.partition(" ")
        path = Path(path.strip())
        if not path.exists():
            print(f"File {path} does not exist.")
            return True
        court.file_document(case_id, side, path.name, services.extract_text_from_file(path))
        print(f"Filed {path.name} for the {side}.")
    elif cmd == "verdict":
        decision = court.request_verdict(case_id, rest.strip() or None)
        print(f"\n=== {decision.decision_type.value.upper()} DECISION ===\n{decision.text}\n")
    elif cmd == "surrender":
        decision = court.surrender(case_id, rest.strip())
        print(f"\n{decision.text}\n")
    elif cmd == "status":
        print_status(court, case_id)
    else:
        print(HELP)
    return True


def main(court=None, get_user_input=get_user_input):
    print("=== Courtroom Simulation CLI ===\n")
    if court is None:
        engine = create_engine(config.DB_URL, echo=False)
        SQLModel.metadata.create_all(engine)
        court = CaseEngine(engine)

    title = get_user_input("Case title: ").strip()
    case_type = get_user_input("Case type [default: civil]: ").strip().lower() or "civil"
    try:
        snap = court.create_case(title, case_type)
    except CourtroomError as e:
        print(f"Rejected: {e.message}")
        return 1
    if snap.existing:
        print(f"Resuming existing case {snap.id}.")
    print(HELP)

    while True:
        print_status(court, snap.id)
        try:
            line = get_user_input("> ")
        except EOFError:
            break
        try:
            if not run_command(court, snap.id, line):
                break
        except CourtroomError as e:
            kind = "Rejected" if e.client_error else "Failed"
            print(f"{kind}: {e.message}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
