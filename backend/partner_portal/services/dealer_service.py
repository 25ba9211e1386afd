"""
Dealer Network Service
CRUD over dealer records with ownership and role based visibility
"""

import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, contains_eager, joinedload
from sqlalchemy.sql import func

from partner_portal.core.errors import (
    Forbidden,
    NotAuthenticated,
    NotFound,
    ServerError,
    ValidationError,
)
from partner_portal.models import Dealer, User
from partner_portal.services.auth_service import SessionContext

logger = logging.getLogger(__name__)

# Business attributes a caller may set; owner and id are never among them
EDITABLE_FIELDS = (
    "company_name",
    "contact_person",
    "phone_number",
    "gstin_number",
    "address",
)


class DealerService:
    """
    Dealer records scoped by the calling session

    Rules:
    - Partners see and change only the dealers they created
    - Admins see every dealer and may change or delete any of them
    - Only partners create dealers; an admin owns none
    - Ownership is checked inside the same UPDATE/DELETE statement that
      performs the write
    """

    def __init__(self, db: Session):
        """
        Args:
            db: Database session
        """
        self.db = db

    # ------------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------------

    def list_dealers(self, ctx: SessionContext) -> List[Dealer]:
        """
        Dealers visible to the caller, newest first

        Admins get every dealer, partners only their own.
        """
        self._require_identity(ctx)

        try:
            query = self.db.query(Dealer).options(joinedload(Dealer.partner))

            if not ctx.is_admin:
                query = query.filter(Dealer.partner_user_id == ctx.user_id)

            return query.order_by(desc(Dealer.id)).all()

        except SQLAlchemyError as e:
            self._fail("Error fetching dealer network", e)
            raise ServerError("Failed to retrieve dealer network data.") from e

    def list_all_dealers(self) -> List[Dealer]:
        """
        Every dealer grouped by owner, then by company name

        Callers must have passed the admin guard.
        """
        try:
            return (
                self.db.query(Dealer)
                .join(User, Dealer.partner_user_id == User.id)
                .options(contains_eager(Dealer.partner))
                .order_by(User.username, Dealer.company_name, Dealer.id)
                .all()
            )
        except SQLAlchemyError as e:
            self._fail("Error fetching all dealers", e)
            raise ServerError("Failed to retrieve dealer network data.") from e

    def get_dealer(self, ctx: SessionContext, dealer_id: int) -> Dealer:
        """
        A single dealer visible to the caller

        Raises:
            NotFound: missing, or owned by another partner
        """
        self._require_identity(ctx)

        try:
            dealer = self._scoped_query(ctx, dealer_id).options(joinedload(Dealer.partner)).first()
        except SQLAlchemyError as e:
            self._fail("Error fetching dealer", e)
            raise ServerError("Failed to retrieve dealer details.") from e

        if not dealer:
            raise NotFound("Dealer not found.")

        return dealer

    # ------------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------------

    def save_dealer(self, ctx: SessionContext, data: Dict, dealer_id: Optional[int] = None) -> Tuple[Dealer, bool]:
        """
        Create a dealer or update an existing one

        Args:
            ctx: Caller identity
            data: {
                "company_name": str,    # required
                "contact_person": str,
                "phone_number": str,    # required
                "gstin_number": str,
                "address": str,
            }
            dealer_id: None or 0 creates, anything else updates

        Returns:
            (dealer, created)

        Raises:
            ValidationError: company name or phone number missing
            Forbidden: partner updating a dealer that is not theirs (or missing)
                       or an admin creating one
            NotFound: admin updating a dealer that does not exist
            ServerError: database failure
        """
        self._require_identity(ctx)

        if not _filled(data.get("company_name")) or not _filled(data.get("phone_number")):
            raise ValidationError("Company Name and Phone Number are required.")

        values = {field: data.get(field) for field in EDITABLE_FIELDS}

        if dealer_id:
            return self._update_dealer(ctx, dealer_id, values), False

        if ctx.is_admin:
            logger.warning(f"🚫 Create refused: user {ctx.user_id} is an administrator")
            raise Forbidden("Access Denied: Administrators cannot create dealers.")

        return self._create_dealer(ctx, values), True

    def delete_dealer(self, ctx: SessionContext, dealer_id: int):
        """
        Delete a dealer

        Raises:
            NotFound: missing, or owned by another partner (not distinguished)
        """
        self._require_identity(ctx)

        try:
            deleted = self._scoped_query(ctx, dealer_id).delete(synchronize_session=False)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("Error deleting dealer", e)
            raise ServerError("Failed to delete dealer due to a server error.") from e

        if not deleted:
            logger.warning(f"🚫 Delete refused: dealer {dealer_id} not found or not owned by user {ctx.user_id}")
            raise NotFound("Dealer not found or you do not have permission to delete it.")

        logger.info(f"🗑️  Dealer deleted: id={dealer_id} by user {ctx.user_id}")

    # ------------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------------

    def _create_dealer(self, ctx: SessionContext, values: Dict) -> Dealer:
        dealer = Dealer(partner_user_id=ctx.user_id, **values)

        try:
            self.db.add(dealer)
            self.db.commit()
            self.db.refresh(dealer)
        except SQLAlchemyError as e:
            self._fail("Error creating dealer", e)
            raise ServerError("Failed to save dealer details due to a database error.") from e

        logger.info(f"➕ Dealer created: {dealer.company_name} (id={dealer.id}, owner={ctx.user_id})")

        return dealer

    def _update_dealer(self, ctx: SessionContext, dealer_id: int, values: Dict) -> Dealer:
        values = dict(values, updated_at=func.now())

        try:
            updated = self._scoped_query(ctx, dealer_id).update(values, synchronize_session=False)
            self.db.commit()

            dealer = None
            if updated:
                dealer = (
                    self.db.query(Dealer)
                    .options(joinedload(Dealer.partner))
                    .filter(Dealer.id == dealer_id)
                    .first()
                )
        except SQLAlchemyError as e:
            self._fail("Error updating dealer", e)
            raise ServerError("Failed to save dealer details due to a database error.") from e

        if not dealer:
            if ctx.is_admin:
                raise NotFound("Dealer not found.")
            logger.warning(f"🚫 Update refused: dealer {dealer_id} not owned by user {ctx.user_id}")
            raise Forbidden("Access Denied: You can only edit dealers you created.")

        logger.info(f"📝 Dealer updated: {dealer.company_name} (id={dealer.id}) by user {ctx.user_id}")

        return dealer

    def _scoped_query(self, ctx: SessionContext, dealer_id: int):
        """Query for one dealer id, narrowed to the caller's own rows unless admin"""
        query = self.db.query(Dealer).filter(Dealer.id == dealer_id)

        if not ctx.is_admin:
            query = query.filter(Dealer.partner_user_id == ctx.user_id)

        return query

    def _require_identity(self, ctx: SessionContext):
        if not ctx.is_authenticated:
            raise NotAuthenticated()

    def _fail(self, what: str, error: Exception):
        self.db.rollback()
        logger.error(f"❌ {what}: {error}", exc_info=True)


def _filled(value: Optional[str]) -> bool:
    return bool(value and value.strip())


