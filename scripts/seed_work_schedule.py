#!/usr/bin/env python3
"""
Work Schedule Seeding Script

Creates the standard business hours for a user directly in the database:
Mon-Fri 08:00-12:00 and 13:00-18:00 working, 12:00-13:00 lunch,
18:00-23:59 after hours (overtime allowed), weekends unavailable.

Usage:
    python scripts/seed_work_schedule.py --user-id 1
    python scripts/seed_work_schedule.py --email ana@example.com --name "Ana" --create-user

Options:
    --user-id       Existing user to seed
    --email         Look the user up by email (with --create-user, create it)
    --name          Name for a user created with --create-user
    --timezone      IANA zone of the schedule (default: configured zone)
    --init-db       Create missing tables first
"""

import argparse
import logging
import sys

from agenda.core.database import init_db
from agenda.core.dependencies import get_db_context
from agenda.core.exceptions import ApplicationException
from agenda.repositories import UnitOfWork
from agenda.services.work_schedule_rules import WorkScheduleRules

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def resolve_user_id(uow: UnitOfWork, args: argparse.Namespace) -> int:
    if args.user_id is not None:
        return uow.users.get_or_fail(args.user_id).id

    user = uow.users.get_by_email(args.email)
    if user is not None:
        return user.id
    if not args.create_user:
        raise SystemExit(f"No user with email {args.email}; pass --create-user to create it")
    user = uow.users.create_user({"name": args.name or args.email, "email": args.email})
    logger.info(f"Created user {user.id} ({user.email})")
    return user.id


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the default work schedule for a user")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument('--user-id', type=int, help='Existing user id')
    target.add_argument('--email', help='User email')
    parser.add_argument('--name', help='Name for a newly created user')
    parser.add_argument('--create-user', action='store_true', help='Create the user if missing')
    parser.add_argument('--timezone', help='IANA timezone of the schedule')
    parser.add_argument('--init-db', action='store_true', help='Create missing tables first')
    args = parser.parse_args()

    if args.init_db:
        init_db()

    with get_db_context() as db:
        uow = UnitOfWork(db)
        rules = WorkScheduleRules(uow)
        try:
            user_id = resolve_user_id(uow, args)
            schedule = rules.seed_default_schedule(user_id, timezone=args.timezone)
        except ApplicationException as e:
            logger.error(e.message)
            return 1

        resolved = rules.get_user_work_schedule(user_id)
        logger.info(f"Created work schedule '{schedule.name}' (ID: {schedule.id}) in {schedule.timezone}")
        for day_name, blocks in rules.describe(resolved).items():
            logger.info(f"  {day_name}: {', '.join(blocks)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
