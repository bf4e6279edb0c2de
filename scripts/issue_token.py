"""Issue a bearer token for the browser extension.

Creates the user when it does not exist yet.  The raw token is printed
once; paste it into the extension's settings.

Usage:
    python scripts/issue_token.py alice                  # token for alice
    python scripts/issue_token.py alice --name laptop    # label the token
    python scripts/issue_token.py alice --revoke-all     # revoke alice's tokens first
"""
import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from app import create_app
from app.extensions import db
from app.models import ExtensionToken, User

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')
logger = logging.getLogger(__name__)


def issue_token(username: str, name: str = 'Extension', email: str = None,
                revoke_all: bool = False) -> str:
    app = create_app()
    with app.app_context():
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username, email=email)
            db.session.add(user)
            db.session.flush()
            logger.info("Created user %s (id=%d)", username, user.id)

        if revoke_all:
            revoked = 0
            for token in user.tokens.filter_by(revoked=False):
                token.revoked = True
                revoked += 1
            logger.info("Revoked %d existing token(s)", revoked)

        token = ExtensionToken.issue(user, name=name)
        db.session.commit()
        logger.info("Issued token %r for %s", name, username)
        return token.token


if __name__ == '__main__':
    parser = argparse.ArgumentParser(
        description='Issue a bearer token for the browser extension',
    )
    parser.add_argument('username', help='Owner of the token')
    parser.add_argument('--name', default='Extension', help='Label for the token')
    parser.add_argument('--email', default=None, help='Email for a newly created user')
    parser.add_argument(
        '--revoke-all', action='store_true',
        help="Revoke the user's existing tokens first",
    )
    args = parser.parse_args()
    print(issue_token(args.username, name=args.name, email=args.email,
                      revoke_all=args.revoke_all))
