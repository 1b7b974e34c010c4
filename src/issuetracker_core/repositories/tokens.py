"""Token persistence. Only token hashes are stored."""
from sqlalchemy import delete, select

from .. import models
from .base import SqlRepository
from .errors import NotFound


class SqlTokenRepository(SqlRepository):
    """TokenRepository backed by SQLAlchemy."""

    model = models.Token
    unique_constraint = "tokens_pkey"

    async def create(self, token: models.Token) -> None:
        await self._insert(token)

    async def get_user_for_token(self, scope: str, token_hash: bytes) -> models.User:
        """
        Find the owner of an unexpired token with the given scope.

        Raises:
            NotFound: If no token matches hash, scope and expiry together
        """
        stmt = (
            select(models.User)
            .join(models.Token, models.Token.user_id == models.User.id)
            .where(
                models.Token.hash == token_hash,
                models.Token.scope == scope,
                models.Token.expiry > models.utcnow(),
            )
        )
        async with self.session_factory() as session:
            user = (await session.execute(stmt)).scalars().first()
        if user is None:
            raise NotFound()
        return user

    async def delete_all_for_user(self, scope: str, user_id: int) -> None:
        async with self.session_factory() as session:
            await session.execute(
                delete(models.Token).where(models.Token.scope == scope, models.Token.user_id == user_id)
            )
            await session.commit()
