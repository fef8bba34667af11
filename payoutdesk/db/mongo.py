"""MongoDB record store (motor + beanie)."""

import functools
from datetime import datetime
from decimal import Decimal
from typing import Any

import certifi
from beanie import PydanticObjectId, init_beanie
from bson import Decimal128, ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorClientSession
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from payoutdesk.core.config import Settings
from payoutdesk.core.exceptions import (
    ConflictError,
    InsufficientBalanceError,
    NotFoundError,
    StorageUnavailableError,
)
from payoutdesk.core.logging import get_logger
from payoutdesk.db.base import RecordStore
from payoutdesk.db.documents import (
    DOCUMENT_MODELS,
    PriceDocument,
    SingletonDocument,
    UserDocument,
    WithdrawDocument,
)
from payoutdesk.models.price_quote import PriceQuote
from payoutdesk.models.types import utcnow
from payoutdesk.models.user import User
from payoutdesk.models.withdraw_request import WithdrawRequest

log = get_logger(__name__)


def _use_tls(uri: str) -> bool:
    """True if URI uses TLS (Atlas or explicit tls=true). Avoids TLS for plain mongodb:// in CI."""
    return "mongodb+srv://" in uri or "tls=true" in uri.lower()


def _oid(value: str) -> ObjectId | None:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def _driver_errors(fn):
    """Translate driver failures into StorageUnavailableError; full detail stays in the log."""

    @functools.wraps(fn)
    async def wrapper(self, *args, **kwargs):
        try:
            return await fn(self, *args, **kwargs)
        except PyMongoError as e:
            log.exception("mongo_error", op=fn.__name__, error=str(e))
            raise StorageUnavailableError() from e

    return wrapper


def _user_from_doc(doc: UserDocument) -> User:
    return User(
        id=str(doc.id),
        name=doc.name,
        email=doc.email,
        password_hash=doc.password_hash,
        role=doc.role,
        phone_number=doc.phone_number,
        referral_code=doc.referral_code,
        session_version=doc.session_version,
        balance=doc.balance,
        created_at=doc.created_at,
        updated_at=doc.updated_at,
    )


def _user_from_raw(raw: dict[str, Any]) -> User:
    fields = {k: v for k, v in raw.items() if k in User.model_fields and k != "id"}
    return User(id=str(raw["_id"]), **fields)


def _withdraw_from_doc(doc: WithdrawDocument) -> WithdrawRequest:
    return WithdrawRequest(
        id=str(doc.id),
        user_id=doc.user_id,
        amount=doc.amount,
        price_at_request=doc.price_at_request,
        bank_name=doc.bank_name,
        account_name=doc.account_name,
        account_no=doc.account_no,
        ifsc_code=doc.ifsc_code,
        created_at=doc.created_at,
    )


def _withdraw_raw(withdraw: WithdrawRequest) -> dict[str, Any]:
    raw = withdraw.model_dump(exclude={"id"})
    raw["_id"] = ObjectId(withdraw.id)
    raw["amount"] = Decimal128(withdraw.amount)
    raw["price_at_request"] = Decimal128(withdraw.price_at_request)
    return raw


class MongoRecordStore(RecordStore):
    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._client: AsyncIOMotorClient | None = None

    async def connect(self) -> None:
        settings = self.settings
        # Atlas in Docker: tlsCAFile + tlsDisableOCSPEndpointCheck avoid TLSV1_ALERT_INTERNAL_ERROR
        kwargs: dict[str, Any] = {
            "serverSelectionTimeoutMS": int(settings.store_timeout_seconds * 1000),
            "tz_aware": True,
        }
        if _use_tls(settings.mongodb_uri):
            kwargs["tlsCAFile"] = certifi.where()
            kwargs["tlsDisableOCSPEndpointCheck"] = True
        self._client = AsyncIOMotorClient(settings.mongodb_uri, **kwargs)
        database = self._client[settings.mongodb_db_name]
        await init_beanie(database=database, document_models=DOCUMENT_MODELS)
        log.info("mongo_connected", db=settings.mongodb_db_name, transactions=settings.mongodb_transactions)

    async def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    # Users

    @_driver_errors
    async def create_user(self, user: User) -> User:
        doc = UserDocument(
            id=PydanticObjectId(user.id),
            **user.model_dump(exclude={"id"}),
        )
        try:
            await doc.insert()
        except DuplicateKeyError as e:
            raise ConflictError("Email already registered") from e
        return _user_from_doc(doc)

    @_driver_errors
    async def get_user(self, user_id: str) -> User | None:
        oid = _oid(user_id)
        if oid is None:
            return None
        doc = await UserDocument.get(oid)
        return _user_from_doc(doc) if doc else None

    @_driver_errors
    async def get_user_by_email(self, email: str) -> User | None:
        doc = await UserDocument.find_one(UserDocument.email == email.lower())
        return _user_from_doc(doc) if doc else None

    @_driver_errors
    async def list_users(self, limit: int, offset: int) -> list[User]:
        docs = (
            await UserDocument.find_all()
            .sort("-created_at", "-_id")
            .skip(offset)
            .limit(limit)
            .to_list()
        )
        return [_user_from_doc(d) for d in docs]

    @_driver_errors
    async def set_user_balance(self, user_id: str, balance: Decimal, updated_at: datetime) -> User | None:
        oid = _oid(user_id)
        if oid is None:
            return None
        raw = await UserDocument.get_motor_collection().find_one_and_update(
            {"_id": oid},
            {"$set": {"balance": Decimal128(balance), "updated_at": updated_at}},
            return_document=ReturnDocument.AFTER,
        )
        return _user_from_raw(raw) if raw else None

    @_driver_errors
    async def bump_session_version(self, user_id: str) -> None:
        oid = _oid(user_id)
        if oid is None:
            return
        await UserDocument.get_motor_collection().update_one(
            {"_id": oid},
            {"$inc": {"session_version": 1}, "$set": {"updated_at": utcnow()}},
        )

    @_driver_errors
    async def delete_user(self, user_id: str) -> bool:
        oid = _oid(user_id)
        if oid is None:
            return False
        result = await UserDocument.get_motor_collection().delete_one({"_id": oid})
        return result.deleted_count == 1

    # Withdrawals

    def _users(self):
        return UserDocument.get_motor_collection()

    def _withdraws(self):
        return WithdrawDocument.get_motor_collection()

    async def _conditional_debit(
        self,
        withdraw: WithdrawRequest,
        session: AsyncIOMotorClientSession | None = None,
    ) -> dict[str, Any]:
        users = self._users()
        oid = _oid(withdraw.user_id)
        if oid is None:
            raise NotFoundError("User not found")
        raw = await users.find_one_and_update(
            {"_id": oid, "balance": {"$gte": Decimal128(withdraw.amount)}},
            {
                "$inc": {"balance": Decimal128(-withdraw.amount)},
                "$set": {"updated_at": withdraw.created_at},
            },
            return_document=ReturnDocument.AFTER,
            session=session,
        )
        if raw is None:
            if await users.count_documents({"_id": oid}, session=session) == 0:
                raise NotFoundError("User not found")
            raise InsufficientBalanceError()
        return raw

    @_driver_errors
    async def debit_and_record(self, withdraw: WithdrawRequest) -> User:
        if self.settings.mongodb_transactions:
            return await self._debit_in_transaction(withdraw)
        return await self._debit_with_compensation(withdraw)

    async def _debit_in_transaction(self, withdraw: WithdrawRequest) -> User:
        async with await self._client.start_session() as session:
            async with session.start_transaction():
                raw = await self._conditional_debit(withdraw, session=session)
                await self._withdraws().insert_one(_withdraw_raw(withdraw), session=session)
        return _user_from_raw(raw)

    async def _debit_with_compensation(self, withdraw: WithdrawRequest) -> User:
        # Standalone servers have no transactions: debit first, undo it if the insert fails.
        raw = await self._conditional_debit(withdraw)
        try:
            await self._withdraws().insert_one(_withdraw_raw(withdraw))
        except BaseException:
            log.error("withdraw_insert_failed_compensating", user_id=withdraw.user_id, withdraw_id=withdraw.id)
            try:
                await self._users().update_one(
                    {"_id": raw["_id"]},
                    {"$inc": {"balance": Decimal128(withdraw.amount)}},
                )
            except Exception:
                # balance stays debited with no withdrawal record; needs manual repair
                log.exception(
                    "withdraw_compensation_failed",
                    user_id=withdraw.user_id,
                    withdraw_id=withdraw.id,
                    amount=str(withdraw.amount),
                )
            raise
        return _user_from_raw(raw)

    @_driver_errors
    async def list_withdrawals(self, limit: int, offset: int) -> list[WithdrawRequest]:
        docs = (
            await WithdrawDocument.find_all()
            .sort("-created_at", "-_id")
            .skip(offset)
            .limit(limit)
            .to_list()
        )
        return [_withdraw_from_doc(d) for d in docs]

    # Prices

    @_driver_errors
    async def latest_price(self) -> PriceQuote | None:
        doc = await PriceDocument.find_all().sort("-created_at", "-_id").first_or_none()
        if not doc:
            return None
        return PriceQuote(id=str(doc.id), price=doc.price, created_at=doc.created_at)

    @_driver_errors
    async def insert_price(self, quote: PriceQuote) -> PriceQuote:
        await PriceDocument(id=PydanticObjectId(quote.id), price=quote.price, created_at=quote.created_at).insert()
        return quote

    # Singletons

    @_driver_errors
    async def get_singleton(self, kind: str) -> dict[str, Any] | None:
        doc = await SingletonDocument.find_one(SingletonDocument.kind == kind)
        return dict(doc.data) if doc else None

    @_driver_errors
    async def upsert_singleton(
        self, kind: str, data: dict[str, Any]
    ) -> tuple[dict[str, Any] | None, dict[str, Any]]:
        now = utcnow()
        previous = await SingletonDocument.get_motor_collection().find_one_and_update(
            {"kind": kind},
            {"$set": {"data": data, "updated_at": now}, "$setOnInsert": {"created_at": now}},
            upsert=True,
            return_document=ReturnDocument.BEFORE,
        )
        return (previous.get("data") if previous else None), data
