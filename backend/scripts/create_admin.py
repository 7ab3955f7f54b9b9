import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from avatar_api import create_app, db
from avatar_api.models.client import Client
from getpass import getpass
import logging
import argparse

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description='Create (or reset) an admin account')
    parser.add_argument('email')
    parser.add_argument('--name', default='Administrator')
    parser.add_argument('--create-tables', action='store_true', help='Create missing tables first')
    args = parser.parse_args()

    password = getpass("Password: ")
    if not password or password != getpass("Repeat password: "):
        logger.error("Passwords are empty or do not match")
        sys.exit(1)

    app = create_app()
    with app.app_context():
        if args.create_tables:
            db.create_all()

        email = args.email.strip().lower()
        client = Client.query.filter_by(email=email).first()
        if client:
            logger.info(f"Resetting password and role for existing user {client.id}")
        else:
            client = Client(email=email, name=args.name)
            db.session.add(client)

        client.role = 'admin'
        client.is_active = True
        client.set_password(password)
        db.session.commit()
        logger.info(f"Admin account ready: {email} (id {client.id})")


if __name__ == "__main__":
    main()
