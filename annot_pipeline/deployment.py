"""
Deployment parameters for pipeline services.

Each pipeline stage can be deployed as a service listening on a broker queue
(endpoint), replicated scaleup times, with an error threshold. The runner in
this package executes stages in-process and only enforces the thresholds;
configure() writes the parameters out as YAML deployment descriptors for the
broker-based runtime.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List

import yaml

PRIMITIVE = "primitive"
AGGREGATE = "aggregate"

# Default service layout per stage: (engine name, service name, description, endpoint queue)
DEFAULT_SERVICES: Dict[str, tuple[str, str, str, str]] = {
    "sentences": ("sentDetectAE", "sentdetect", "Adds sentence annotations to the document.", "sentdetectQ"),
    "concepts": (
        "conceptMapperAAE",
        "ConceptMapper",
        "Runs ConceptMapper over sentences in the document.",
        "conceptMapperQ",
    ),
    "dependencies": ("depParseAE", "DependencyParser", "Adds tokens with dependency relations.", "depParseQ"),
    "dependency_filter": (
        "depFilterAE",
        "DependencyFilter",
        "Removes concept annotations with unseen dependency patterns.",
        "depFilterQ",
    ),
    "serialize": ("annotSerializerAE", "AnnotSerializer", "Serializes the annotations to file.", "annotSerializerQ"),
    "catalog": ("runCatalogAE", "RunCatalog", "Catalogs new annotation-output and document files.", "catalogAeQ"),
}


@dataclass(frozen=True)
class DeploymentParams:
    service_name: str
    description: str
    scaleup: int
    error_threshold: int  # 0 = never abort
    endpoint: str
    broker_url: str

    def __post_init__(self):
        if self.scaleup < 1:
            raise ValueError(f"scaleup for {self.service_name} must be at least 1, got {self.scaleup}")
        if self.error_threshold < 0:
            raise ValueError(f"error_threshold for {self.service_name} must not be negative")


@dataclass(frozen=True)
class ServiceEngine:
    engine_name: str
    stage: str
    deployment: DeploymentParams
    descriptor_type: str = PRIMITIVE
    params: Dict[str, Any] = field(default_factory=dict, compare=False)


def engine_name_for(stage: str) -> str:
    if stage in DEFAULT_SERVICES:
        return DEFAULT_SERVICES[stage][0]
    return "".join(part.capitalize() for part in stage.split("_")) + "AE"


def default_deployment(stage: str, cas_pool_size: int, broker_url: str, overrides: Dict[str, Any] | None = None) -> DeploymentParams:
    """
    Deployment parameters for a stage: the default service layout with any
    configured overrides applied.
    """
    _, service_name, description, endpoint = DEFAULT_SERVICES.get(
        stage, (engine_name_for(stage), stage, f"Runs the {stage} stage.", f"{stage}Q")
    )
    if stage == "serialize":
        scaleup = max(1, cas_pool_size // 2)
    elif stage == "catalog":
        scaleup = 1
    else:
        scaleup = max(1, cas_pool_size)
    values = {
        "service_name": service_name,
        "description": description,
        "scaleup": scaleup,
        "error_threshold": 0,
        "endpoint": endpoint,
        "broker_url": broker_url,
    }
    values.update(overrides or {})
    return DeploymentParams(**values)


def stage_engines(
    stage_configs: Dict[str, Dict[str, Any]],
    cas_pool_size: int,
    broker_url: str,
) -> List[ServiceEngine]:
    """One primitive service per configured stage, in stage order, with its deployment overrides applied."""
    return [
        ServiceEngine(
            engine_name=engine_name_for(name),
            stage=name,
            deployment=default_deployment(name, cas_pool_size, broker_url, overrides=stage.get("deployment")),
            params=dict(stage.get("params") or {}),
        )
        for name, stage in stage_configs.items()
    ]


def pipeline_deployment(
    pipeline_key: str,
    description: str,
    broker_url: str,
    overrides: Dict[str, Any] | None = None,
) -> DeploymentParams:
    values = {
        "service_name": pipeline_key.upper(),
        "description": description,
        "scaleup": 1,
        "error_threshold": 1,
        "endpoint": f"{pipeline_key.lower()}_pipelineQ",
        "broker_url": broker_url,
    }
    values.update(overrides or {})
    return DeploymentParams(**values)


def write_deployment_descriptors(
    config_dir: str | Path,
    pipeline: DeploymentParams,
    engines: List[ServiceEngine],
) -> List[Path]:
    """
    Write one YAML descriptor per service plus the aggregate descriptor.

    Returns:
        Paths of the written files, aggregate last.
    """
    config_dir = Path(config_dir)
    config_dir.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    for engine in engines:
        descriptor = {
            "engine": engine.engine_name,
            "stage": engine.stage,
            "descriptor_type": engine.descriptor_type,
            "deployment": asdict(engine.deployment),
            "params": dict(engine.params),
        }
        path = config_dir / f"{engine.engine_name}_deploy.yaml"
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(descriptor, f, sort_keys=False)
        written.append(path)

    aggregate = {
        "descriptor_type": AGGREGATE,
        "deployment": asdict(pipeline),
        "delegates": [
            {"engine": e.engine_name, "endpoint": e.deployment.endpoint} for e in engines
        ],
    }
    path = config_dir / f"{pipeline.service_name.lower()}_aggregate.yaml"
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(aggregate, f, sort_keys=False)
    written.append(path)
    return written
