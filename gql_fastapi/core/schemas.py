from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterable, Callable, Dict, List, Optional, Union

from graphql import GraphQLSchema
from pydantic import BaseModel, ConfigDict, Field


# =========================
# Enums
# =========================
class RequestMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    OTHER = "OTHER"

    @classmethod
    def from_http(cls, method: str) -> "RequestMethod":
        try:
            return cls(method.upper())
        except ValueError:
            return cls.OTHER


# =========================
# REQUEST
# =========================
class HttpRequest(BaseModel):
    """Framework-free view of the inbound request, handed to the engine as-is."""

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class RequestDescriptor:
    method: RequestMethod
    # Parsed JSON body for POST, query string params for everything else
    query: Any
    request: HttpRequest


class GraphQLRequestParams(BaseModel):
    query: Optional[str] = None
    operation_name: Optional[str] = Field(default=None, alias="operationName")
    # GET sends these as JSON encoded strings
    variables: Optional[Union[Dict[str, Any], str]] = None
    extensions: Optional[Union[Dict[str, Any], str]] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# =========================
# OPTIONS
# =========================
class GraphQLOptions(BaseModel):
    schema_: GraphQLSchema = Field(alias="schema")
    root_value: Any = None
    context_value: Any = None
    debug: bool = False
    validation_rules: Optional[List[Any]] = None
    field_resolver: Optional[Callable[..., Any]] = None

    model_config = ConfigDict(arbitrary_types_allowed=True, populate_by_name=True)

    @property
    def schema(self) -> GraphQLSchema:
        return self.schema_


# =========================
# OUTCOME
# =========================
class ResponseInit(BaseModel):
    status: Optional[int] = None
    headers: Dict[str, str] = Field(default_factory=dict)


class SingleResponse(BaseModel):
    body: Optional[str] = None
    response_init: ResponseInit = Field(default_factory=ResponseInit)


@dataclass(frozen=True)
class StreamedResponse:
    """Incremental results, consumed once in emission order."""

    patches: AsyncIterable[str]


ExecutionOutcome = Union[SingleResponse, StreamedResponse]
