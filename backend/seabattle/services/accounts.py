"""Player accounts and the win table.

``AccountStore`` is the win store handed to the game registry: the engine
only ever calls :meth:`increment_win` and :meth:`winners`.
"""
from typing import List

from seabattle import db
from seabattle.models import User
from seabattle.services.games.errors import AccountExists, InvalidCredentials
from seabattle.services.games.rooms import Player


def as_player(user: User) -> Player:
    return Player(name=user.name, index=user.id)


class AccountStore:

    def register(self, name: str, password: str) -> User:
        if User.query.filter_by(name=name).first():
            raise AccountExists()
        user = User(name=name, wins=0)
        user.set_password(password)
        db.session.add(user)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return user

    def authenticate(self, name: str, password: str) -> User:
        user = User.query.filter_by(name=name).first()
        if not user or not user.check_password(password):
            raise InvalidCredentials()
        return user

    def register_or_login(self, name: str, password: str) -> User:
        """Log in an existing player, or register a new one under that name."""
        if User.query.filter_by(name=name).first():
            return self.authenticate(name, password)
        return self.register(name, password)

    def increment_win(self, name: str) -> None:
        user = User.query.filter_by(name=name).first()
        if not user:
            return
        user.wins = (user.wins or 0) + 1
        db.session.add(user)
        try:
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def winners(self) -> List[dict]:
        users = User.query.order_by(User.wins.desc(), User.name).all()
        return [u.to_winner() for u in users]
