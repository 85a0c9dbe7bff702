"""
GraphQL view with idempotency and logging support.
"""
import hashlib
import json
import logging
from uuid import uuid4

from ariadne import graphql_sync
from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection, transaction
from django.http import JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_http_methods
from graphql import GraphQLError, OperationDefinitionNode, OperationType, parse

from orders.api.identity import caller_from_request
from orders.api.middleware import ErrorHandler, format_graphql_error
from orders.api.schema import schema
from orders.infra.models import IdempotencyKey
from orders.infra.pii_masker import mask_headers
from orders.services import OrderService

logger = logging.getLogger(__name__)

MUTATION_OPERATIONS = {
    "createOrder": "CREATE_ORDER",
    "updateOrderStatus": "UPDATE_ORDER_STATUS",
    "cancelOrder": "CANCEL_ORDER",
    "deleteOrder": "DELETE_ORDER",
}


class OrdersGraphQLView:
    """GraphQL view with idempotency and structured logging."""

    def __init__(self, service: OrderService | None = None):
        self.service = service or OrderService()

    def dispatch(self, request, *args, **kwargs):
        """Handle GraphQL request with idempotency."""
        request_id = request.headers.get("X-Request-ID") or str(uuid4())
        idempotency_key = request.headers.get("Idempotency-Key")
        caller = caller_from_request(request)

        logger.info(
            "graphql_request",
            extra={"request_id": request_id, "operation": "graphql", **mask_headers(request.headers)},
        )

        if request.method == "GET":
            return JsonResponse({"message": "GraphQL endpoint. Use POST for queries."})

        try:
            data = json.loads(request.body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            return ErrorHandler.response("INVALID_JSON", "Invalid JSON")
        if not isinstance(data, dict):
            return ErrorHandler.response("INVALID_JSON", "Request body must be a JSON object")

        operation = self._mutation_operation(data)
        if idempotency_key and caller.user_id and operation:
            response = self._idempotent(request, data, caller, operation, idempotency_key, request_id)
        else:
            response = self._execute(request, data, caller, request_id)

        logger.info(
            "graphql_response",
            extra={
                "request_id": request_id,
                "operation": operation or "query",
                "status": response.status_code,
            }
        )
        return response

    def _idempotent(self, request, data, caller, operation, idempotency_key, request_id):
        """Replay a stored response for a repeated mutation, or execute and store it."""
        request_hash = self._create_request_hash(data.get("query", ""), data.get("variables") or {})

        existing = IdempotencyKey.objects.filter(
            key=idempotency_key,
            user_id=caller.user_id,
            operation=operation,
        ).first()

        if existing:
            if existing.request_hash == request_hash:
                logger.info(
                    "idempotent_request_cached",
                    extra={"request_id": request_id, "operation": operation},
                )
                return JsonResponse(existing.response_payload, safe=False)

            logger.warning(
                "idempotency_key_conflict",
                extra={"request_id": request_id, "operation": operation},
            )
            return ErrorHandler.response(
                "DUPLICATE_REQUEST",
                "Idempotency key already used with different request",
            )

        response = self._execute(request, data, caller, request_id)

        if response.status_code == 200:
            try:
                with transaction.atomic():
                    IdempotencyKey.objects.create(
                        key=idempotency_key,
                        user_id=caller.user_id,
                        operation=operation,
                        request_hash=request_hash,
                        response_payload=json.loads(response.content),
                    )
            except IntegrityError as e:
                # A concurrent duplicate stored its response first.
                logger.warning(
                    "idempotency_key_race",
                    extra={"request_id": request_id, "operation": operation, "error": str(e)},
                )

        return response

    def _execute(self, request, data, caller, request_id):
        """Execute GraphQL query."""
        try:
            success, result = graphql_sync(
                schema,
                data,
                context_value={
                    "request": request,
                    "request_id": request_id,
                    "caller": caller,
                    "service": self.service,
                },
                debug=settings.DEBUG,
                error_formatter=format_graphql_error,
            )
        except DatabaseError as e:
            return ErrorHandler.handle_error(e)

        status_code = 200 if success else 400
        return JsonResponse(result, status=status_code)

    def _create_request_hash(self, query: str, variables: dict) -> str:
        """Create hash of request for deduplication."""
        content = json.dumps({"query": query, "variables": variables}, sort_keys=True, default=str)
        return hashlib.sha256(content.encode()).hexdigest()

    def _mutation_operation(self, data: dict) -> str | None:
        """Operation type of the mutation in the request, if it is one."""
        try:
            document = parse(data.get("query") or "")
        except (GraphQLError, TypeError):
            return None

        operation_name = data.get("operationName")
        for definition in document.definitions:
            if not isinstance(definition, OperationDefinitionNode):
                continue
            if operation_name and (definition.name is None or definition.name.value != operation_name):
                continue
            if definition.operation != OperationType.MUTATION:
                return None
            for selection in definition.selection_set.selections:
                field_name = getattr(selection, "name", None)
                if field_name is not None and field_name.value in MUTATION_OPERATIONS:
                    return MUTATION_OPERATIONS[field_name.value]
            return None
        return None


@csrf_exempt
@require_http_methods(["GET", "POST"])
def graphql_view(request):
    """GraphQL endpoint."""
    view = OrdersGraphQLView()
    return view.dispatch(request)


@require_GET
def health_view(request):
    """Liveness with a database round-trip."""
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except DatabaseError as e:
        return ErrorHandler.handle_error(e)
    return JsonResponse({"status": "ok"})
