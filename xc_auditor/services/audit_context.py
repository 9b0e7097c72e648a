"""
Read-only view of a configuration snapshot, shared by every rule.
"""
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple

from xc_auditor.models.enums import ObjectType


def make_key(namespace: str, name: str) -> str:
    """Snapshot key for an object."""
    return f"{namespace}/{name}"


def split_key(key: str) -> Tuple[str, str]:
    """Inverse of make_key. Names never contain '/', namespaces never do either."""
    namespace, _, name = key.partition("/")
    return namespace, name


class AuditContext:
    """
    Snapshot of configuration objects keyed by "{namespace}/{name}" per object type.

    Built once per audit run by the snapshot builder, read-only afterwards:
    ``configs`` exposes MappingProxyType views so rules cannot write through it.
    """

    def __init__(self, tenant: str, configs: Dict[ObjectType, Dict[str, Any]]):
        """
        Initialize audit context.

        Args:
            tenant: Tenant identifier
            configs: Object maps per type; missing types are treated as empty
        """
        self.tenant = tenant
        self._configs = {
            object_type: MappingProxyType(dict(configs.get(object_type, {})))
            for object_type in ObjectType
        }

    @property
    def configs(self) -> Mapping[ObjectType, Mapping[str, Any]]:
        return MappingProxyType(self._configs)

    def objects(self, object_type: ObjectType) -> Mapping[str, Any]:
        """All objects of one type."""
        return self._configs[ObjectType(object_type)]

    def iter_objects(self, object_type: ObjectType) -> Iterator[Tuple[str, str, Any]]:
        """Yield (namespace, key, object) for every object of one type, in snapshot order."""
        for key, obj in self.objects(object_type).items():
            namespace, _ = split_key(key)
            yield namespace, key, obj

    def count(self, object_type: ObjectType) -> int:
        return len(self.objects(object_type))

    def get(self, object_type: ObjectType, namespace: str, name: str) -> Optional[Any]:
        """Look up one object by namespace and name."""
        return self.objects(object_type).get(make_key(namespace, name))

    def has(self, object_type: ObjectType, namespace: str, name: str) -> bool:
        return make_key(namespace, name) in self.objects(object_type)

    # Cross-reference helpers used by rules

    def get_load_balancer(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.HTTP_LOADBALANCER, namespace, name)

    def get_origin_pool(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.ORIGIN_POOL, namespace, name)

    def get_app_firewall(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.APP_FIREWALL, namespace, name)

    def get_health_check(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.HEALTHCHECK, namespace, name)

    def get_certificate(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.CERTIFICATE, namespace, name)

    def get_service_policy(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.SERVICE_POLICY, namespace, name)

    def get_user_identification(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.USER_IDENTIFICATION, namespace, name)

    def get_alert_receiver(self, namespace: str, name: str) -> Optional[Any]:
        return self.get(ObjectType.ALERT_RECEIVER, namespace, name)

    def snapshot_counts(self) -> Dict[str, int]:
        """Number of objects per object type."""
        return {object_type.value: len(objects) for object_type, objects in self._configs.items()}
