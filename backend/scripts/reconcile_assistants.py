import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from avatar_api import create_app, db
from avatar_api.models.auth_session import AuthSession
from avatar_api.services.reconcile_service import reconcile_assistants
from datetime import datetime, timezone
from sqlalchemy.exc import SQLAlchemyError
import json
import logging
import argparse

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def purge_expired_sessions():
    """Remove session rows past their expiry"""
    try:
        count = AuthSession.query.filter(AuthSession.expires_at <= datetime.now(timezone.utc)).delete()
        db.session.commit()
        logger.info(f"Removed {count} expired sessions")
        return count
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error purging sessions: {str(e)}")
        raise


def main():
    parser = argparse.ArgumentParser(description='Reconcile local assistants with their remote copies')
    parser.add_argument('--apply', action='store_true', help='Push local configuration to drifted remote assistants')
    parser.add_argument('--client-id', type=int, help='Only check assistants of this client')
    parser.add_argument('--purge-sessions', action='store_true', help='Also delete expired login sessions')

    args = parser.parse_args()

    app = create_app()
    with app.app_context():
        if args.purge_sessions:
            purge_expired_sessions()

        report = reconcile_assistants(dry_run=not args.apply, client_id=args.client_id)
        logger.info(
            f"Checked {report['checked']} assistants: {len(report['missing'])} missing remotely, "
            f"{len(report['drift'])} drifted, {len(report['repaired'])} repaired"
        )
        print(json.dumps(report, indent=2, default=str))

        if report['missing'] or report['errors'] or (report['drift'] and not args.apply):
            sys.exit(1)


if __name__ == "__main__":
    main()
