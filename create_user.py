from werkzeug.security import generate_password_hash

from app import create_app
from models import ROLES
from store import ConstraintViolation, get_store


def create_user(name, email, password, role):
    app = create_app()
    with app.app_context():
        store = get_store()
        existing = store.find_user_by_email(email)
        if existing:
            print(f"⚠️  E-Mail '{email}' is already registered to '{existing.name}' (role: {existing.role}).")
            return None

        try:
            user_id = store.create_user(name, email, generate_password_hash(password), role=role)
        except ConstraintViolation as exc:
            print(f"⚠️  User not created: {exc}")
            return None
        print(f"✅ Created user #{user_id}: {name} <{email.strip().lower()}> (role: {role})")
        return user_id


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Create a new user.')
    parser.add_argument('name', help='Display name')
    parser.add_argument('email', help='E-mail (login)')
    parser.add_argument('password', help='Password')
    parser.add_argument('--role', choices=ROLES, default='user', help='User role')

    args = parser.parse_args()
    create_user(args.name, args.email, args.password, args.role)
