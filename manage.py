# manage.py
import sys

from app import create_app
from src.database.db_manager import User, db


def create_db():
    """Creates the database tables."""
    app = create_app()
    with app.app_context():
        db.create_all()
        print(f"Database tables created at {app.config['SQLALCHEMY_DATABASE_URI']}")


def create_admin(username: str, password: str, app=None) -> User:
    """Create an admin account, or promote and re-key an existing one."""
    app = app or create_app()
    with app.app_context():
        user = User.query.filter_by(username=username).first()
        if user is None:
            user = User(username=username)
            db.session.add(user)
        user.is_admin = True
        user.banned = False
        user.is_active = True
        user.set_password(password)
        db.session.commit()
        print(f"Admin user ready: {username}")
        return user


USAGE = "Usage: python manage.py create_db | create_admin <username> <password>"


def main(argv) -> int:
    if len(argv) < 2:
        print(f"No command provided. {USAGE}")
        return 1
    command = argv[1]
    if command == 'create_db':
        create_db()
        return 0
    if command == 'create_admin' and len(argv) == 4:
        create_admin(argv[2], argv[3])
        return 0
    print(f"Unknown command: {' '.join(argv[1:])}")
    print(USAGE)
    return 1


if __name__ == '__main__':
    sys.exit(main(sys.argv))
