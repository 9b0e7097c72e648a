"""
Snapshot builder: fetches configuration objects across namespaces in parallel.

Every (namespace, object type) pair is listed and hydrated in its own task on a
ThreadPoolExecutor. Tasks are joined best-effort: a failing task only removes
its own slice from the snapshot. The fetch phase as a whole fails only when
every listing call failed.
"""
import logging
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from xc_auditor.core.cancellation import CancellationToken
from xc_auditor.core.config import settings
from xc_auditor.core.exceptions import AuditAbortedError, SnapshotFetchError
from xc_auditor.models.enums import NAMESPACED_OBJECT_TYPES, AuditPhase, ObjectType
from xc_auditor.schemas.audit import AuditProgress
from xc_auditor.services.audit_context import AuditContext, make_key
from xc_auditor.utils.config_object import as_dict, as_list, get_metadata, object_name, object_namespace
from xc_auditor.utils.progress import progress_percent

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[AuditProgress], None]

# Share of overall progress reserved for the fetch phase
FETCH_PROGRESS_SHARE = 20


@dataclass
class FetchOutcome:
    """Result of listing and hydrating one object type in one namespace."""
    namespace: str
    object_type: ObjectType
    objects: List[Tuple[str, str, Dict[str, Any]]] = field(default_factory=list)  # (owning ns, name, object)
    error: Optional[Exception] = None
    fallbacks: int = 0  # items kept as list summaries because the full fetch failed


class SnapshotBuilder:
    """Builds an AuditContext from the config store."""

    def __init__(
        self,
        client,
        max_workers: Optional[int] = None,
        shared_namespace: Optional[str] = None,
    ):
        """
        Initialize snapshot builder.

        Args:
            client: Config store client exposing list_objects() and get_object()
            max_workers: Fetch threads (defaults to settings.FETCH_MAX_WORKERS)
            shared_namespace: Namespace holding global log receivers
        """
        self.client = client
        self.max_workers = max_workers or settings.FETCH_MAX_WORKERS
        self.shared_namespace = shared_namespace or settings.XC_SHARED_NAMESPACE

    def build(
        self,
        namespaces: Sequence[str],
        token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> AuditContext:
        """
        Fetch every auditable object in the given namespaces.

        Args:
            namespaces: Namespaces to audit (duplicates are ignored)
            token: Cancellation token polled before each namespace batch and each hydrate call
            on_progress: Optional progress sink, called from this thread only

        Returns:
            Populated, read-only AuditContext

        Raises:
            AuditAbortedError: If the token was cancelled
            SnapshotFetchError: If every listing call failed
        """
        token = token or CancellationToken()
        ordered_namespaces = list(dict.fromkeys(namespaces))
        total_namespaces = len(ordered_namespaces)

        futures: Dict[Future, Tuple[Optional[str], ObjectType]] = {}
        pending_per_namespace: Dict[str, int] = {}
        outcomes: Dict[Tuple[Optional[str], ObjectType], FetchOutcome] = {}
        namespaces_done = 0

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="xc-fetch")
        try:
            # Global log receivers are tenant-wide; fetched once from the shared namespace
            global_future = executor.submit(
                self._fetch_type, self.shared_namespace, ObjectType.GLOBAL_LOG_RECEIVER, token
            )
            futures[global_future] = (None, ObjectType.GLOBAL_LOG_RECEIVER)

            for namespace in ordered_namespaces:
                token.raise_if_cancelled()
                for object_type in NAMESPACED_OBJECT_TYPES:
                    future = executor.submit(self._fetch_type, namespace, object_type, token)
                    futures[future] = (namespace, object_type)
                pending_per_namespace[namespace] = len(NAMESPACED_OBJECT_TYPES)

            for future in as_completed(futures):
                namespace, object_type = futures[future]
                outcomes[(namespace, object_type)] = future.result()
                token.raise_if_cancelled()

                if namespace is None:
                    continue
                pending_per_namespace[namespace] -= 1
                if pending_per_namespace[namespace] == 0:
                    namespaces_done += 1
                    self._emit(on_progress, AuditProgress(
                        phase=AuditPhase.FETCHING,
                        message=f"Fetched namespace: {namespace}",
                        progress=progress_percent(namespaces_done, total_namespaces, 0, FETCH_PROGRESS_SHARE),
                        current_namespace=namespace,
                    ))

            token.raise_if_cancelled()
        except AuditAbortedError:
            logger.info(f"Snapshot build aborted after {namespaces_done}/{total_namespaces} namespace(s)")
            raise
        finally:
            # No-op after a clean join; on abort, drops queued fetches without waiting
            executor.shutdown(wait=False, cancel_futures=True)

        return self._assemble(ordered_namespaces, outcomes)

    def _fetch_type(
        self,
        namespace: str,
        object_type: ObjectType,
        token: CancellationToken,
    ) -> FetchOutcome:
        """List one object type in a namespace and hydrate each item (runs in a worker thread)."""
        outcome = FetchOutcome(namespace=namespace, object_type=object_type)
        token.raise_if_cancelled()

        try:
            listing = self.client.list_objects(namespace, object_type)
        except AuditAbortedError:
            raise
        except Exception as e:
            logger.warning(f"Failed to list {object_type.value} from namespace {namespace}: {e}")
            outcome.error = e
            return outcome

        for item in as_list(as_dict(listing).get("items")):
            name = object_name(item)
            if not name:
                continue

            token.raise_if_cancelled()
            try:
                full = self.client.get_object(namespace, object_type, name)
                if not isinstance(full, dict) or not full:
                    raise ValueError("empty object body")
            except AuditAbortedError:
                raise
            except Exception as e:
                # A fetchable-but-incomplete object beats a missing one
                logger.debug(f"Using list entry for {object_type.value} {namespace}/{name}: {e}")
                full = as_dict(item)
                outcome.fallbacks += 1

            owning_namespace = object_namespace(full, default=namespace)
            outcome.objects.append((owning_namespace, name, _with_identity(full, owning_namespace, name)))

        logger.debug(
            f"Fetched {len(outcome.objects)} {object_type.value} object(s) from {namespace} "
            f"({outcome.fallbacks} from list entries)"
        )
        return outcome

    def _assemble(
        self,
        ordered_namespaces: List[str],
        outcomes: Dict[Tuple[Optional[str], ObjectType], FetchOutcome],
    ) -> AuditContext:
        """Merge task outcomes in input order into one context."""
        errors = [outcome.error for outcome in outcomes.values() if outcome.error is not None]
        if outcomes and len(errors) == len(outcomes):
            raise SnapshotFetchError(errors)

        configs: Dict[ObjectType, Dict[str, Any]] = {object_type: {} for object_type in ObjectType}

        merge_order: List[Tuple[Optional[str], ObjectType]] = [
            (namespace, object_type)
            for namespace in ordered_namespaces
            for object_type in NAMESPACED_OBJECT_TYPES
        ]
        merge_order.append((None, ObjectType.GLOBAL_LOG_RECEIVER))

        for slot in merge_order:
            outcome = outcomes.get(slot)
            if outcome is None:
                continue
            target = configs[outcome.object_type]
            for owning_namespace, name, obj in outcome.objects:
                key = make_key(owning_namespace, name)
                if key in target:
                    # Shared objects are visible from several namespaces; first resolution wins
                    logger.debug(
                        f"Ignoring duplicate {outcome.object_type.value} {key} "
                        f"listed under namespace {outcome.namespace}"
                    )
                    continue
                target[key] = obj

        if errors:
            logger.warning(f"Snapshot is partial: {len(errors)} of {len(outcomes)} fetch(es) failed")

        total = sum(len(objects) for objects in configs.values())
        logger.info(f"Snapshot built: {total} object(s) across {len(ordered_namespaces)} namespace(s)")

        return AuditContext(tenant=getattr(self.client, "tenant", "") or "", configs=configs)

    @staticmethod
    def _emit(on_progress: Optional[ProgressCallback], progress: AuditProgress) -> None:
        if on_progress:
            on_progress(progress)


def _with_identity(obj: Dict[str, Any], namespace: str, name: str) -> Dict[str, Any]:
    """Return obj with metadata.name/namespace set, copying only when something is missing."""
    metadata = get_metadata(obj)
    if metadata.get("name") == name and metadata.get("namespace") == namespace:
        return obj
    patched = dict(obj)
    patched["metadata"] = {**metadata, "name": metadata.get("name") or name, "namespace": namespace}
    return patched
