import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app
from app.errors import HealthDataBatchError
from app.repositories import user_repository
from app.services.measurement_service import process_health_data


def load_entries(path: Path) -> list:
    with path.open("r", encoding="utf-8") as fh:
        payload = json.load(fh)
    if isinstance(payload, dict):
        payload = payload.get("data")
    if not isinstance(payload, list):
        raise SystemExit(f"{path}: expected a JSON list of entries or an object with a 'data' list.")
    return payload


def main():
    parser = argparse.ArgumentParser(
        description="Import an exported health-data batch (steps, water, active calories) for one user."
    )
    parser.add_argument("email", help="Email of the user the readings belong to.")
    parser.add_argument("file", type=Path, help="JSON file with {value, type, unit, date} entries.")
    args = parser.parse_args()

    entries = load_entries(args.file)

    app = create_app()
    with app.app_context():
        found = user_repository.get_user_credentials_by_email(args.email.strip().lower())
        if not found:
            raise SystemExit(f"No user with email {args.email}")
        user = found[0]

        try:
            result = process_health_data(entries, user["id"])
        except HealthDataBatchError as exc:
            print(f"Imported {len(exc.processed)} entries, {len(exc.errors)} failed:")
            for error in exc.errors:
                print(f"  - {error['error']}")
            sys.exit(1)

        print(f"{result['message']} ({len(result['processed'])} entries)")


if __name__ == "__main__":
    main()
