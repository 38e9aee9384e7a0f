"""
Campground persistence.

CampgroundStore is the interface the route handlers depend on. Two backends
implement it:
- MongoCampgroundStore: pymongo AsyncMongoClient, one collection per entity.
- InMemoryCampgroundStore: dict-backed, for tests and database-less runs.

Reviews are owned by exactly one campground. Multi-step mutations are ordered
so that an interrupted operation can leave an orphan review document behind
but never a campground pointing at a review that does not exist.
"""
import logging
from typing import Dict, List, Optional, Protocol

from bson import ObjectId
from pymongo import AsyncMongoClient, ReturnDocument

import config
from schemas import Campground, CampgroundIn, PopulatedCampground, Review, ReviewIn

logger = logging.getLogger(__name__)


class CampgroundStore(Protocol):
    """Protocol for campground storage. Implementations: MongoCampgroundStore, InMemoryCampgroundStore."""

    async def open(self) -> None:
        ...

    async def close(self) -> None:
        ...

    async def list_campgrounds(self) -> List[Campground]:
        ...

    async def get_campground(self, campground_id: str) -> Optional[Campground]:
        ...

    async def get_populated_campground(self, campground_id: str) -> Optional[PopulatedCampground]:
        """Campground with its review ids resolved to Review values, in list order."""
        ...

    async def create_campground(self, data: CampgroundIn) -> Campground:
        ...

    async def update_campground(self, campground_id: str, data: CampgroundIn) -> Optional[Campground]:
        ...

    async def delete_campground(self, campground_id: str) -> Optional[Campground]:
        """Delete the campground and every review it owns."""
        ...

    async def get_review(self, review_id: str) -> Optional[Review]:
        """Single review lookup. Routes read reviews through get_populated_campground;
        this is the direct accessor for admin scripts and tests checking cascades."""
        ...

    async def create_review(self, campground_id: str, data: ReviewIn) -> Optional[Review]:
        """None when the campground does not exist; nothing is persisted then."""
        ...

    async def delete_review(self, campground_id: str, review_id: str) -> bool:
        """False when the campground does not exist or does not own the review."""
        ...


# Utilities

def _object_id(value: str) -> Optional[ObjectId]:
    return ObjectId(value) if ObjectId.is_valid(value) else None


def serialize_campground(doc) -> Campground:
    return Campground(
        id=str(doc["_id"]),
        title=doc.get("title", ""),
        location=doc.get("location", ""),
        price=float(doc.get("price", 0)),
        description=doc.get("description"),
        image=doc.get("image"),
        reviews=[str(r) for r in doc.get("reviews", [])],
    )


def serialize_review(doc) -> Review:
    return Review(id=str(doc["_id"]), rating=int(doc.get("rating", 0)), body=doc.get("body", ""))


class MongoCampgroundStore:
    """Campgrounds and reviews in MongoDB.

    With use_transactions set (replica set or sharded cluster required) the
    multi-step mutations run inside one transaction. Without it they rely on
    step ordering only.
    """

    def __init__(
        self,
        url: str,
        db_name: str,
        use_transactions: bool = False,
        timeout_ms: int = 5000,
    ) -> None:
        self._url = url
        self._db_name = db_name
        self._use_transactions = use_transactions
        self._timeout_ms = timeout_ms
        self._client: Optional[AsyncMongoClient] = None
        self._db = None

    async def open(self) -> None:
        self._client = AsyncMongoClient(self._url, serverSelectionTimeoutMS=self._timeout_ms)
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            logger.error(f"connection error: {e}")
            await self._client.close()
            self._client = None
            raise
        self._db = self._client[self._db_name]
        logger.info(f"Database connected: {self._db_name}")

    async def close(self) -> None:
        if self._client is None:
            return
        await self._client.close()
        self._client = None
        self._db = None
        logger.info("Database connection closed")

    def _collection(self, name: str):
        if self._db is None:
            raise RuntimeError("MongoCampgroundStore is not open")
        return self._db[name]

    @property
    def _campgrounds(self):
        return self._collection("campgrounds")

    @property
    def _reviews(self):
        return self._collection("reviews")

    async def _run(self, operation):
        # operation(session) -> result; session is None outside a transaction
        if not self._use_transactions:
            return await operation(None)
        async with self._client.start_session() as session:
            return await session.with_transaction(operation)

    async def list_campgrounds(self) -> List[Campground]:
        return [serialize_campground(doc) async for doc in self._campgrounds.find({})]

    async def get_campground(self, campground_id: str) -> Optional[Campground]:
        oid = _object_id(campground_id)
        if oid is None:
            return None
        doc = await self._campgrounds.find_one({"_id": oid})
        return serialize_campground(doc) if doc else None

    async def get_populated_campground(self, campground_id: str) -> Optional[PopulatedCampground]:
        oid = _object_id(campground_id)
        if oid is None:
            return None
        doc = await self._campgrounds.find_one({"_id": oid})
        if not doc:
            return None
        review_ids = doc.get("reviews", [])
        found = {}
        if review_ids:
            async for r in self._reviews.find({"_id": {"$in": review_ids}}):
                found[r["_id"]] = serialize_review(r)
        campground = serialize_campground(doc)
        return PopulatedCampground(
            **campground.model_dump(exclude={"reviews"}),
            reviews=[found[rid] for rid in review_ids if rid in found],
        )

    async def create_campground(self, data: CampgroundIn) -> Campground:
        doc = data.model_dump()
        doc["reviews"] = []
        res = await self._campgrounds.insert_one(doc)
        doc["_id"] = res.inserted_id
        logger.info(f"Created campground {res.inserted_id}")
        return serialize_campground(doc)

    async def update_campground(self, campground_id: str, data: CampgroundIn) -> Optional[Campground]:
        oid = _object_id(campground_id)
        if oid is None:
            return None
        doc = await self._campgrounds.find_one_and_update(
            {"_id": oid},
            {"$set": data.model_dump(exclude_unset=True)},
            return_document=ReturnDocument.AFTER,
        )
        return serialize_campground(doc) if doc else None

    async def delete_campground(self, campground_id: str) -> Optional[Campground]:
        oid = _object_id(campground_id)
        if oid is None:
            return None

        async def _delete(session):
            doc = await self._campgrounds.find_one_and_delete({"_id": oid}, session=session)
            if doc and doc.get("reviews"):
                await self._reviews.delete_many({"_id": {"$in": doc["reviews"]}}, session=session)
            return doc

        doc = await self._run(_delete)
        if not doc:
            return None
        logger.info(f"Deleted campground {oid} and {len(doc.get('reviews', []))} review(s)")
        return serialize_campground(doc)

    async def get_review(self, review_id: str) -> Optional[Review]:
        oid = _object_id(review_id)
        if oid is None:
            return None
        doc = await self._reviews.find_one({"_id": oid})
        return serialize_review(doc) if doc else None

    async def create_review(self, campground_id: str, data: ReviewIn) -> Optional[Review]:
        oid = _object_id(campground_id)
        if oid is None:
            return None

        async def _create(session):
            if not await self._campgrounds.find_one({"_id": oid}, {"_id": 1}, session=session):
                return None
            doc = data.model_dump()
            await self._reviews.insert_one(doc, session=session)
            res = await self._campgrounds.update_one(
                {"_id": oid}, {"$push": {"reviews": doc["_id"]}}, session=session
            )
            if res.matched_count == 0:
                # campground deleted between the lookup and the push
                await self._reviews.delete_one({"_id": doc["_id"]}, session=session)
                return None
            return doc

        doc = await self._run(_create)
        if not doc:
            return None
        logger.info(f"Created review {doc['_id']} for campground {oid}")
        return serialize_review(doc)

    async def delete_review(self, campground_id: str, review_id: str) -> bool:
        campground_oid = _object_id(campground_id)
        review_oid = _object_id(review_id)
        if campground_oid is None or review_oid is None:
            return False

        async def _delete(session):
            res = await self._campgrounds.update_one(
                {"_id": campground_oid, "reviews": review_oid},
                {"$pull": {"reviews": review_oid}},
                session=session,
            )
            if res.modified_count == 0:
                return False
            await self._reviews.delete_one({"_id": review_oid}, session=session)
            return True

        deleted = await self._run(_delete)
        if deleted:
            logger.info(f"Deleted review {review_oid} from campground {campground_oid}")
        return deleted


class InMemoryCampgroundStore:
    """In-memory CampgroundStore. Contents are lost on restart."""

    def __init__(self) -> None:
        self._campgrounds: Dict[str, Campground] = {}
        self._reviews: Dict[str, Review] = {}

    async def open(self) -> None:
        logger.info("Using in-memory campground store")

    async def close(self) -> None:
        return None

    async def list_campgrounds(self) -> List[Campground]:
        return [c.model_copy(deep=True) for c in self._campgrounds.values()]

    async def get_campground(self, campground_id: str) -> Optional[Campground]:
        campground = self._campgrounds.get(campground_id)
        return campground.model_copy(deep=True) if campground else None

    async def get_populated_campground(self, campground_id: str) -> Optional[PopulatedCampground]:
        campground = self._campgrounds.get(campground_id)
        if campground is None:
            return None
        return PopulatedCampground(
            **campground.model_dump(exclude={"reviews"}),
            reviews=[self._reviews[rid].model_copy() for rid in campground.reviews if rid in self._reviews],
        )

    async def create_campground(self, data: CampgroundIn) -> Campground:
        campground = Campground(id=str(ObjectId()), **data.model_dump())
        self._campgrounds[campground.id] = campground
        return campground.model_copy(deep=True)

    async def update_campground(self, campground_id: str, data: CampgroundIn) -> Optional[Campground]:
        campground = self._campgrounds.get(campground_id)
        if campground is None:
            return None
        updated = campground.model_copy(update=data.model_dump(exclude_unset=True))
        self._campgrounds[campground_id] = updated
        return updated.model_copy(deep=True)

    async def delete_campground(self, campground_id: str) -> Optional[Campground]:
        campground = self._campgrounds.pop(campground_id, None)
        if campground is None:
            return None
        for rid in campground.reviews:
            self._reviews.pop(rid, None)
        return campground

    async def get_review(self, review_id: str) -> Optional[Review]:
        review = self._reviews.get(review_id)
        return review.model_copy() if review else None

    async def create_review(self, campground_id: str, data: ReviewIn) -> Optional[Review]:
        campground = self._campgrounds.get(campground_id)
        if campground is None:
            return None
        review = Review(id=str(ObjectId()), **data.model_dump())
        self._reviews[review.id] = review
        campground.reviews.append(review.id)
        return review.model_copy()

    async def delete_review(self, campground_id: str, review_id: str) -> bool:
        campground = self._campgrounds.get(campground_id)
        if campground is None or review_id not in campground.reviews:
            return False
        campground.reviews.remove(review_id)
        self._reviews.pop(review_id, None)
        return True


def create_store() -> CampgroundStore:
    if config.STORE_BACKEND == "memory":
        return InMemoryCampgroundStore()
    return MongoCampgroundStore(
        config.MONGO_URL,
        config.MONGO_DB,
        use_transactions=config.MONGO_TRANSACTIONS,
        timeout_ms=config.MONGO_TIMEOUT_MS,
    )
