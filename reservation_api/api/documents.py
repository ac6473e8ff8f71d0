"""Generic document CRUD router shared by the resource collaborators."""
from typing import Any

from bson import ObjectId
from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from pymongo import ReturnDocument

from reservation_api.api.deps import get_connection_manager
from reservation_api.infrastructure.mongo import ConnectionManager


def serialize(document: dict) -> dict:
    return jsonable_encoder(document, custom_encoder={ObjectId: str})


def parse_object_id(document_id: str, label: str) -> ObjectId:
    if not ObjectId.is_valid(document_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return ObjectId(document_id)


def build_document_router(collection_name: str, label: str) -> APIRouter:
    """Build list/create/get/update/delete endpoints for one collection.

    Args:
        collection_name: MongoDB collection backing the resource.
        label: human readable name used in error messages.
    """
    router = APIRouter(tags=[collection_name])

    def get_collection(manager: ConnectionManager = Depends(get_connection_manager)):
        return manager.collection(collection_name)

    @router.get("", summary=f"List {collection_name}")
    @router.get("/", include_in_schema=False)
    async def list_documents(collection=Depends(get_collection)):
        return [serialize(document) async for document in collection.find()]

    @router.post("", status_code=status.HTTP_201_CREATED, summary=f"Create {label}")
    @router.post("/", status_code=status.HTTP_201_CREATED, include_in_schema=False)
    async def create_document(payload: dict[str, Any] = Body(...), collection=Depends(get_collection)):
        document = {key: value for key, value in payload.items() if key != "_id"}
        result = await collection.insert_one(document)
        document["_id"] = result.inserted_id
        return serialize(document)

    @router.get("/{document_id}", summary=f"Get {label}")
    async def get_document(document_id: str, collection=Depends(get_collection)):
        document = await collection.find_one({"_id": parse_object_id(document_id, label)})
        if document is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return serialize(document)

    @router.put("/{document_id}", summary=f"Update {label}")
    async def update_document(document_id: str, payload: dict[str, Any] = Body(...),
                              collection=Depends(get_collection)):
        query = {"_id": parse_object_id(document_id, label)}
        changes = {key: value for key, value in payload.items() if key != "_id"}
        if changes:
            document = await collection.find_one_and_update(
                query, {"$set": changes}, return_document=ReturnDocument.AFTER
            )
        else:
            document = await collection.find_one(query)
        if document is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return serialize(document)

    @router.delete("/{document_id}", summary=f"Delete {label}")
    async def delete_document(document_id: str, collection=Depends(get_collection)):
        result = await collection.delete_one({"_id": parse_object_id(document_id, label)})
        if result.deleted_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
        return {"message": f"{label} deleted", "id": document_id}

    return router
