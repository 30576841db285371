"""
Seed one demo account per role, with starting leave entitlements.

    python -m scripts.seed_users
"""
import logging

from lfap.core.logging import setup_logging
from lfap.database import session_scope, init_db
from lfap.models.user import Sex, User, UserRole
from lfap.services.auth import get_password_hash

logger = logging.getLogger("lfap.seed")

DEFAULT_ENTITLEMENTS = {
    "vacation_leave": 15,
    "mandatory_leave": 5,
    "sick_leave": 15,
    "special_privilege_leave": 3,
}

DEMO_USERS = [
    ("employee@example.com", "Employee123!", UserRole.EMPLOYEE, "Ana", "Reyes", Sex.FEMALE, "IT"),
    ("manager@example.com", "Manager123!", UserRole.MANAGER, "Ben", "Cruz", Sex.MALE, "IT"),
    ("hr@example.com", "HrAdmin123!", UserRole.HR_ADMIN, "Carla", "Santos", Sex.FEMALE, "HR"),
    ("executive@example.com", "Executive123!", UserRole.TOP_MANAGEMENT, "Dan", "Lim", Sex.MALE, "Executive"),
    ("admin@example.com", "SuperAdmin123!", UserRole.SUPER_ADMIN, "Eve", "Tan", Sex.FEMALE, "Executive"),
]


def create_user(db, email, password, role, first_name, last_name, sex, department):
    if db.query(User).filter(User.email == email).first():
        logger.info(f"User {email} already exists. Skipping.")
        return None

    user = User(
        email=email,
        hashed_password=get_password_hash(password),
        role=role,
        first_name=first_name,
        last_name=last_name,
        sex=sex,
        department=department,
        maternity_leave=105 if sex == Sex.FEMALE else 0,
        paternity_leave=7 if sex == Sex.MALE else 0,
        **DEFAULT_ENTITLEMENTS,
    )
    db.add(user)
    db.commit()
    logger.info(f"Created {role.value} -> {email}")
    return user


def main():
    setup_logging()
    init_db()
    with session_scope() as db:
        for row in DEMO_USERS:
            create_user(db, *row)


if __name__ == "__main__":
    main()
