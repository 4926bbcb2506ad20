import kopf
from logging import Logger
from typing import Dict, List
from kubernetes_asyncio.client import ApiException
from marshmallow import ValidationError
from redisop.types.schemas import RedisReplicationSpecSchema
from redisop.types.models import RedisReplicationSpec
from redisop.resources import RedisReplication
from redisop.resources.params import ServiceOutcome
from redisop.utils.helpers import upsert_condition
from redisop.utils.errors import convert_api_exception

KIND = "RedisReplication"


def get_sensor():
    return getattr(RedisReplication, "sensor", None)


def load_spec(spec) -> RedisReplicationSpec:
    """Load the CRD spec, an invalid spec will never reconcile."""
    try:
        return RedisReplicationSpecSchema().load(spec)
    except ValidationError as e:
        raise kopf.PermanentError(f"Invalid {KIND} spec: {e.messages}") from e


def prepare_services_status(outcomes: List[ServiceOutcome]) -> List[Dict]:
    return [
        {
            "name": outcome.name,
            "kind": outcome.kind.value,
            "outcome": outcome.outcome.value,
        }
        for outcome in outcomes
    ]


def on_error(error, meta, status, patch, outcomes: List[ServiceOutcome] = None):
    """Record a failed reconciliation on the resource status."""
    gen = meta.get("generation", 0)
    conds = (status or {}).get("conditions", [])
    conds = upsert_condition(
        conds,
        {
            "type": "Ready",
            "status": "False",
            "reason": "Error",
            "message": str(error) if error else "Reconcile failed; see events/logs",
            "observedGeneration": gen,
        },
    )
    patch.status["conditions"] = conds
    if outcomes:
        patch.status["services"] = prepare_services_status(outcomes)


def on_success(meta, status, patch, outcomes: List[ServiceOutcome]):
    gen = meta.get("generation", 0)
    conds = (status or {}).get("conditions", [])
    conds = upsert_condition(
        conds,
        {
            "type": "Ready",
            "status": "True",
            "reason": "Reconciled",
            "message": "Services and statefulset are in sync",
            "observedGeneration": gen,
        },
    )
    patch.status["conditions"] = conds
    patch.status["services"] = prepare_services_status(outcomes)
    patch.status["observedGeneration"] = gen


@kopf.on.resume(kind=KIND)
@kopf.on.create(kind=KIND)
@kopf.on.update(kind=KIND, field="spec")
async def reconciliation(
    body,
    spec,
    name,
    namespace,
    meta,
    status,
    patch,
    labels,
    annotations,
    logger: Logger,
    reason=None,
    **kwargs,
):
    """Reconcile the services and statefulset of a RedisReplication."""
    spec_model = load_spec(spec)
    group = RedisReplication.from_spec(
        name,
        namespace,
        spec_model,
        labels=dict(labels or {}),
        annotations=dict(annotations or {}),
        owner_reference=kopf.build_owner_reference(body),
        logger=logger,
    )

    sensor = get_sensor()
    sensor_state = None
    if sensor:
        sensor_state = sensor.on_reconcile_start(
            name, namespace, meta.get("generation", 0), str(reason or "unknown")
        )

    success, error = True, None
    try:
        await group.synchronize()
    except ApiException as e:
        success, error = False, e
        logger.error(f"Failed to reconcile {KIND} {name}: {e}")
        on_error(e, meta, status, patch, group.service_outcomes)
        convert_api_exception(e)
    except Exception as e:
        success, error = False, e
        logger.error(f"Failed to reconcile {KIND} {name}: {e}")
        on_error(e, meta, status, patch, group.service_outcomes)
        raise
    finally:
        if sensor:
            sensor.on_reconcile_complete(name, namespace, sensor_state, success, error)

    on_success(meta, status, patch, group.service_outcomes)
    if sensor:
        sensor.on_status_update(name, namespace, ["conditions", "services"])
    logger.info(f"{KIND} {name} reconciled.")


@kopf.on.delete(kind=KIND, optional=True)
def on_delete(name, namespace, logger: Logger, **kwargs):
    """Owned services and statefulset are garbage collected through owner references."""
    logger.info(f"{KIND} {name} deleted from namespace {namespace}.")
