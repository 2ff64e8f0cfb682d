"""Messages for the live-subscription WebSocket."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from averzo.domain.enums import SortDirection
from averzo.domain.value_objects import CollectionQuery, DocumentRef


class LiveSubscriptionRequest(BaseModel):
    """What the client wants to watch; both targets empty releases the subscription.

    Example: {"collection": "products", "where": [["brand", "==", "acme"]],
    "orderBy": [["price", "desc"]], "limit": 20}
    """

    model_config = ConfigDict(populate_by_name=True)

    collection: str | None = None
    collection_group: str | None = Field(default=None, alias="collectionGroup")
    document: str | None = None
    where: list[tuple[str, str, Any]] = Field(default_factory=list)
    order_by: list[tuple[str, Literal["asc", "desc"]]] = Field(
        default_factory=list, alias="orderBy"
    )
    limit: int | None = Field(default=None, ge=1)

    @model_validator(mode="after")
    def one_target(self) -> "LiveSubscriptionRequest":
        targets = [t for t in (self.collection, self.collection_group, self.document) if t]
        if len(targets) > 1:
            raise ValueError("Set only one of collection, collectionGroup, document")
        return self

    def to_query(self) -> CollectionQuery | None:
        """Collection query for this request, or None if it targets no collection."""
        if self.collection:
            query = CollectionQuery.collection(self.collection)
        elif self.collection_group:
            query = CollectionQuery.group(self.collection_group)
        else:
            return None
        for field_path, op, value in self.where:
            query = query.where(field_path, op, value)
        for field_path, direction in self.order_by:
            query = query.order_by(
                field_path,
                SortDirection.DESCENDING if direction == "desc" else SortDirection.ASCENDING,
            )
        if self.limit is not None:
            query = query.limit(self.limit)
        return query

    def to_document_ref(self) -> DocumentRef | None:
        if not self.document:
            return None
        return DocumentRef.of(self.document)
