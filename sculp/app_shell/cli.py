import argparse
import getpass
import logging
import sys
from datetime import UTC, datetime
from uuid import uuid4

from sculp.adapters.auth.crypto import JWTAuthAdapter
from sculp.adapters.auth.session_store import SQLiteSessionStore
from sculp.adapters.clock import SystemClock
from sculp.adapters.sqlite.migrator import SQLiteMigrator
from sculp.adapters.sqlite.repos import (
    SQLiteExerciseRepo,
    SQLiteFolderRepo,
    SQLiteRoutineRepo,
    SQLiteUserRepo,
)
from sculp.api.deps import Settings, get_settings
from sculp.components.auth import CreateUserInput, run_create_user, run_revoke_user_sessions
from sculp.components.training import CreateFolderInput, run_create_folder
from sculp.domain.entities import (
    Exercise,
    Routine,
    RoutineExercise,
    RoutineSet,
    Subscription,
    User,
)

logger = logging.getLogger("cli")

DEFAULT_EXERCISES = [
    "Barbell Bench Press",
    "Incline Dumbbell Press",
    "Cable Fly",
    "Overhead Press",
    "Lateral Raise",
    "Pull-Up",
    "Barbell Row",
    "Lat Pulldown",
    "Seated Cable Row",
    "Barbell Curl",
    "Triceps Pushdown",
    "Back Squat",
    "Leg Press",
    "Romanian Deadlift",
    "Leg Curl",
    "Leg Extension",
    "Standing Calf Raise",
]


def _require_user(settings: Settings, email: str) -> User:
    user = SQLiteUserRepo(settings.db_path).get_by_email(email.strip().lower())
    if not user:
        logger.error("User %s not found.", email)
        sys.exit(1)
    return user


def handle_migrate(settings: Settings, args: argparse.Namespace) -> None:
    applied = SQLiteMigrator(settings.db_path).run_migrations()
    print(f"Applied {len(applied)} migrations to {settings.db_path}.")


def handle_create_user(settings: Settings, args: argparse.Namespace) -> None:
    password = args.password or getpass.getpass("Password: ")
    if len(password) < 8:
        logger.error("Password must be at least 8 characters long.")
        sys.exit(1)

    result = run_create_user(
        CreateUserInput(email=args.email, password=password),
        SQLiteUserRepo(settings.db_path),
        JWTAuthAdapter(),
        SystemClock(),
    )
    if not result.success or result.user is None:
        logger.error(result.error)
        sys.exit(1)
    print(f"Created user {result.user.email} ({result.user.id}).")


def handle_seed_exercises(settings: Settings, args: argparse.Namespace) -> None:
    repo = SQLiteExerciseRepo(settings.db_path)
    created = 0
    for name in DEFAULT_EXERCISES:
        if repo.get_by_name(name) is None:
            repo.save(Exercise(name=name))
            created += 1
    print(f"Seeded {created} exercises.")


def handle_seed_folders(settings: Settings, args: argparse.Namespace) -> None:
    user = _require_user(settings, args.email)
    exercise_repo = SQLiteExerciseRepo(settings.db_path)
    catalog = {e.name: e for e in exercise_repo.list_available(user.id)}
    if not catalog:
        logger.error("Exercise catalog is empty. Run seed-exercises first.")
        sys.exit(1)

    folder = run_create_folder(
        CreateFolderInput(user=user, name="Push Pull Legs"), SQLiteFolderRepo(settings.db_path)
    ).folder
    assert folder is not None

    routines = {
        "Push": ["Barbell Bench Press", "Overhead Press", "Triceps Pushdown"],
        "Pull": ["Pull-Up", "Barbell Row", "Barbell Curl"],
        "Legs": ["Back Squat", "Romanian Deadlift", "Standing Calf Raise"],
    }
    routine_repo = SQLiteRoutineRepo(settings.db_path)
    for routine_name, names in routines.items():
        routine = Routine(folder_id=folder.id, user_id=user.id, name=routine_name)
        for name in names:
            if name not in catalog:
                continue
            routine.exercises.append(
                RoutineExercise(
                    exercise=catalog[name],
                    sets=[RoutineSet(rep_range_lower=5, rep_range_upper=8) for _ in range(3)],
                )
            )
        routine_repo.save(routine)
    print(f"Seeded folder '{folder.name}' with {len(routines)} routines for {user.email}.")


def handle_grant_subscription(settings: Settings, args: argparse.Namespace) -> None:
    user = _require_user(settings, args.email)
    now = datetime.now(UTC)
    user.stripe_customer_id = user.stripe_customer_id or f"cus_dev_{uuid4().hex[:14]}"
    user.subscription = Subscription(
        stripe_subscription_id=f"sub_dev_{uuid4().hex[:14]}",
        status=args.status,
        updated_at=now,
    )
    user.updated_at = now
    SQLiteUserRepo(settings.db_path).save(user)
    print(f"Granted {args.status} subscription to {user.email}.")


def handle_revoke_sessions(settings: Settings, args: argparse.Namespace) -> None:
    user = _require_user(settings, args.email)
    count = run_revoke_user_sessions(user.id, SQLiteSessionStore(settings.db_path))
    print(f"Revoked {count} sessions for {user.email}.")


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)

    parser = argparse.ArgumentParser(description="Sculp CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # migrate
    subparsers.add_parser("migrate", help="Apply pending database migrations")

    # create-user
    create_parser = subparsers.add_parser("create-user", help="Create a user account")
    create_parser.add_argument("email", help="Email address")
    create_parser.add_argument("--password", help="Password (prompted when omitted)")

    # seed-exercises
    subparsers.add_parser("seed-exercises", help="Seed the shared exercise catalog")

    # seed-folders
    folders_parser = subparsers.add_parser(
        "seed-folders", help="Seed a sample folder with routines for a user"
    )
    folders_parser.add_argument("email", help="Email of the user")

    # grant-subscription
    grant_parser = subparsers.add_parser(
        "grant-subscription", help="Dev: give a user a subscription without checkout"
    )
    grant_parser.add_argument("email", help="Email of the user")
    grant_parser.add_argument(
        "--status", default="trialing", choices=["trialing", "active"], help="Subscription status"
    )

    # revoke-sessions
    revoke_parser = subparsers.add_parser("revoke-sessions", help="Sign a user out everywhere")
    revoke_parser.add_argument("email", help="Email of the user")

    args = parser.parse_args(argv)

    settings = get_settings()
    if args.command != "migrate":
        SQLiteMigrator(settings.db_path).run_migrations()

    handlers = {
        "migrate": handle_migrate,
        "create-user": handle_create_user,
        "seed-exercises": handle_seed_exercises,
        "seed-folders": handle_seed_folders,
        "grant-subscription": handle_grant_subscription,
        "revoke-sessions": handle_revoke_sessions,
    }
    handlers[args.command](settings, args)


if __name__ == "__main__":
    main()
