"""Data access layer for the local wallet cache"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete
from sqlalchemy.orm import Session

from tropipay_wallet.domain.models import Account, Beneficiary
from tropipay_wallet.infrastructure.database.models import CachedAccount, CachedBeneficiary, CachedUser


class UserRepository:
    """Repository for cached users"""

    def __init__(self, db: Session):
        self.db = db

    def upsert(self, client_id: str, profile: Dict[str, Any], environment: str | None = None) -> CachedUser:
        """Create or refresh the user row for a client id and return it"""
        try:
            user = self.db.query(CachedUser).filter(CachedUser.client_id == client_id).first()
            if user is None:
                user = CachedUser(client_id=client_id, profile=profile, environment=environment)
                self.db.add(user)
            else:
                user.profile = profile
                user.environment = environment
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        return user

    def get_by_id(self, user_id: int) -> Optional[CachedUser]:
        return self.db.get(CachedUser, user_id)


class AccountCacheRepository:
    """Last successful accounts list per user, replaced as a whole"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, user_id: int, accounts: Sequence[Account]) -> None:
        """
        Replace the cached accounts for a user.

        Delete and insert share one transaction, so readers see either the
        previous list or the new one.
        """
        try:
            self.db.execute(delete(CachedAccount).where(CachedAccount.user_id == user_id))
            self.db.add_all(
                [
                    CachedAccount(
                        user_id=user_id,
                        account_id=account.account_id,
                        currency=account.currency,
                        balance=account.balance.minor,
                        available=account.available.minor,
                        blocked=account.blocked.minor,
                        pending_in=account.pending_in.minor,
                        pending_out=account.pending_out.minor,
                        is_default=account.is_default,
                        status=account.status,
                        position=position,
                        data=account.raw,
                    )
                    for position, account in enumerate(accounts)
                ]
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logging.exception("Failed to cache accounts", extra={"user_id": user_id})
            raise

    def get(self, user_id: int) -> List[Account]:
        rows = (
            self.db.query(CachedAccount)
            .filter(CachedAccount.user_id == user_id)
            .order_by(CachedAccount.position)
            .all()
        )
        return [Account.from_api(row.data or self._row_to_api(row)) for row in rows]

    @staticmethod
    def _row_to_api(row: CachedAccount) -> Dict[str, Any]:
        return {
            "accountId": row.account_id,
            "currency": row.currency,
            "balance": row.balance,
            "available": row.available,
            "blocked": row.blocked,
            "pendingIn": row.pending_in,
            "pendingOut": row.pending_out,
            "isDefault": row.is_default,
            "status": row.status,
        }


class BeneficiaryCacheRepository:
    """Last successful beneficiaries list per user, replaced as a whole"""

    def __init__(self, db: Session):
        self.db = db

    def save(self, user_id: int, beneficiaries: Sequence[Beneficiary]) -> None:
        try:
            self.db.execute(delete(CachedBeneficiary).where(CachedBeneficiary.user_id == user_id))
            self.db.add_all(
                [
                    CachedBeneficiary(
                        user_id=user_id,
                        beneficiary_id=beneficiary.id,
                        type=beneficiary.type,
                        name=beneficiary.name,
                        account_number=beneficiary.account_number,
                        currency=beneficiary.currency,
                        country=(beneficiary.country or "")[:2] or None,
                        is_verified=beneficiary.is_verified,
                        position=position,
                        data=beneficiary.raw,
                    )
                    for position, beneficiary in enumerate(beneficiaries)
                ]
            )
            self.db.commit()
        except Exception:
            self.db.rollback()
            logging.exception("Failed to cache beneficiaries", extra={"user_id": user_id})
            raise

    def get(self, user_id: int) -> List[Beneficiary]:
        rows = (
            self.db.query(CachedBeneficiary)
            .filter(CachedBeneficiary.user_id == user_id)
            .order_by(CachedBeneficiary.position)
            .all()
        )
        return [
            Beneficiary.from_api(
                row.data
                or {
                    "id": row.beneficiary_id,
                    "type": row.type,
                    "name": row.name,
                    "accountNumber": row.account_number,
                    "currency": row.currency,
                    "country": row.country,
                    "isVerified": row.is_verified,
                }
            )
            for row in rows
        ]
