# distribuidora/core/repository.py

from typing import TypeVar, Type, Optional, List, Any, Dict, Tuple, Generic
from datetime import datetime, timezone

from pydantic import BaseModel
from motor.motor_asyncio import AsyncIOMotorDatabase, AsyncIOMotorCollection
from bson import ObjectId
from pymongo.results import InsertOneResult, UpdateResult, DeleteResult
from pymongo.errors import DuplicateKeyError
from loguru import logger

ModelType = TypeVar("ModelType", bound=BaseModel)  # Documento validado (ex: Client)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Mongo devolve datetimes sem tz (UTC); normaliza filtros recebidos com tz."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """Classe base para repositórios MongoDB com Motor e Pydantic."""

    model: Type[ModelType]
    collection_name: str

    def __init__(self, db: AsyncIOMotorDatabase):
        if not getattr(self, 'collection_name', None):
            raise AttributeError("Repository subclass must define a 'collection_name'")
        if not getattr(self, 'model', None) or not issubclass(self.model, BaseModel):
            raise AttributeError("Repository subclass must define a Pydantic 'model'")

        self.db = db
        self.collection: AsyncIOMotorCollection = db[self.collection_name]

    @staticmethod
    def _to_objectid(id_str: Any) -> Optional[ObjectId]:
        """Converte input para ObjectId de forma segura, retornando None se inválido."""
        if isinstance(id_str, ObjectId):
            return id_str
        if isinstance(id_str, str) and ObjectId.is_valid(id_str):
            return ObjectId(id_str)
        return None

    @staticmethod
    def _date_range(field: str, start: Optional[datetime], end: Optional[datetime]) -> Dict[str, Any]:
        """Monta o filtro {field: {$gte, $lte}} ignorando limites ausentes."""
        bounds: Dict[str, Any] = {}
        if start:
            bounds["$gte"] = to_naive_utc(start)
        if end:
            bounds["$lte"] = to_naive_utc(end)
        return {field: bounds} if bounds else {}

    def _handle_db_exception(self, e: Exception, operation: str, doc_id: Any = None, query: Optional[Dict] = None):
        """Loga e levanta exceções de banco de dados padronizadas."""
        context = f"op='{operation}' coll='{self.collection_name}'"
        if doc_id:
            context += f" id='{doc_id}'"
        if query:
            context += f" query='{str(query)[:100]}'"
        log_msg = f"DB Error during {context}: {e}"

        if isinstance(e, DuplicateKeyError):
            dup_key_info = e.details.get('keyValue', {}) if e.details else {}
            logger.error(f"{log_msg} - Duplicate Key: {dup_key_info}")
            raise ValueError(f"Duplicate key error: Field(s) {list(dup_key_info.keys())} must be unique.") from e
        logger.exception(log_msg)
        raise RuntimeError(f"Database error during operation: {operation}") from e

    async def get_by_id(self, id: str | ObjectId) -> Optional[ModelType]:
        """Busca um documento pelo seu _id."""
        obj_id = self._to_objectid(id)
        if not obj_id:
            return None
        try:
            document = await self.collection.find_one({"_id": obj_id})
        except Exception as e:
            self._handle_db_exception(e, "get_by_id", obj_id)
        return self.model.model_validate(document) if document else None

    async def get_by(self, query: Dict[str, Any]) -> Optional[ModelType]:
        """Busca o PRIMEIRO documento que corresponde a um critério."""
        try:
            document = await self.collection.find_one(query)
        except Exception as e:
            self._handle_db_exception(e, "get_by", query=query)
        return self.model.model_validate(document) if document else None

    async def list_by(
        self,
        query: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 0,
        sort: Optional[List[Tuple[str, int]]] = None,
    ) -> List[ModelType]:
        """Lista documentos com base em critérios, paginação e ordenação (limit=0: sem limite)."""
        query = query or {}
        try:
            cursor = self.collection.find(query)
            if sort:
                cursor = cursor.sort(sort)
            if skip > 0:
                cursor = cursor.skip(skip)
            if limit > 0:
                cursor = cursor.limit(limit)
            documents = await cursor.to_list(length=limit if limit > 0 else None)
        except Exception as e:
            self._handle_db_exception(e, "list_by", query=query)
        return [self.model.model_validate(doc) for doc in documents]

    async def create(self, data_in: CreateSchemaType | Dict) -> ModelType:
        """Cria um novo documento e devolve o modelo validado."""
        if isinstance(data_in, BaseModel):
            create_data = data_in.model_dump()
        else:
            create_data = dict(data_in)

        now = datetime.utcnow()
        create_data.setdefault("created_at", now)
        create_data.setdefault("updated_at", now)
        create_data.pop("_id", None)
        create_data.pop("id", None)

        try:
            result: InsertOneResult = await self.collection.insert_one(create_data)
        except Exception as e:
            self._handle_db_exception(e, "create")

        created_document = await self.get_by_id(result.inserted_id)
        if created_document is None:
            logger.critical(f"CRITICAL: Failed to retrieve document immediately after insertion! ID: {result.inserted_id}, Collection: {self.collection_name}")
            raise RuntimeError("Failed to retrieve document after creation.")
        return created_document

    async def update(self, id: str | ObjectId, data_in: UpdateSchemaType | Dict) -> Optional[ModelType]:
        """Atualiza um documento existente usando $set (apenas campos informados)."""
        obj_id = self._to_objectid(id)
        if not obj_id:
            return None

        if isinstance(data_in, BaseModel):
            update_data = data_in.model_dump(exclude_unset=True)
        else:
            update_data = dict(data_in)

        for field in ("_id", "id", "created_at"):
            update_data.pop(field, None)

        if not update_data:
            logger.debug(f"Update called for ID {id} with no updatable data.")
            return await self.get_by_id(obj_id)

        update_data["updated_at"] = datetime.utcnow()
        try:
            result: UpdateResult = await self.collection.update_one({"_id": obj_id}, {"$set": update_data})
        except Exception as e:
            self._handle_db_exception(e, "update", obj_id)

        if result.matched_count == 0:
            logger.warning(f"Document not found for update: ID {id}, Collection: {self.collection_name}")
            return None
        return await self.get_by_id(obj_id)

    async def delete(self, id: str | ObjectId) -> bool:
        """Deleta um documento pelo ID."""
        obj_id = self._to_objectid(id)
        if not obj_id:
            return False
        try:
            result: DeleteResult = await self.collection.delete_one({"_id": obj_id})
        except Exception as e:
            self._handle_db_exception(e, "delete", obj_id)
        deleted = result.deleted_count > 0
        if deleted:
            logger.info(f"Document deleted: ID {id}, Collection: {self.collection_name}")
        else:
            logger.warning(f"Document not found for deletion: ID {id}, Collection: {self.collection_name}")
        return deleted

    async def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        """Conta documentos que correspondem a um critério."""
        try:
            return await self.collection.count_documents(query or {})
        except Exception as e:
            self._handle_db_exception(e, "count", query=query)

    async def set_active_status(self, id: str | ObjectId, is_active: bool) -> Optional[ModelType]:
        """Deleção lógica: define o campo 'active'."""
        logger.info(f"Setting active status to {is_active} for ID {id} in {self.collection_name}")
        return await self.update(id, {"active": is_active})
