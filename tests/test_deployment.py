"""Tests for deployment parameters and descriptor generation."""

from pathlib import Path

import pytest
import yaml

from annot_pipeline.deployment import (
    AGGREGATE,
    DeploymentParams,
    default_deployment,
    engine_name_for,
    pipeline_deployment,
    stage_engines,
    write_deployment_descriptors,
)
from annot_pipeline.pipeline_runner import PipelineRunner

BROKER = "tcp://localhost:61616"
PMC_PIPELINE = Path(__file__).parent.parent / "pipelines" / "pmc_conceptmapper.yaml"
PMC_STAGES = {name: {"name": name} for name in ["sentences", "concepts", "serialize", "catalog"]}


def test_deployment_params_validation():
    with pytest.raises(ValueError):
        DeploymentParams("svc", "d", scaleup=0, error_threshold=0, endpoint="q", broker_url=BROKER)
    with pytest.raises(ValueError):
        DeploymentParams("svc", "d", scaleup=1, error_threshold=-1, endpoint="q", broker_url=BROKER)


def test_engine_name_for():
    assert engine_name_for("sentences") == "sentDetectAE"
    assert engine_name_for("concepts") == "conceptMapperAAE"
    assert engine_name_for("serialize") == "annotSerializerAE"
    assert engine_name_for("catalog") == "runCatalogAE"
    assert engine_name_for("dependency_filter") == "depFilterAE"
    assert engine_name_for("sentence_split") == "SentenceSplitAE"


def test_default_deployment_scaleups():
    assert default_deployment("concepts", 4, BROKER).scaleup == 4
    assert default_deployment("serialize", 4, BROKER).scaleup == 2
    assert default_deployment("serialize", 1, BROKER).scaleup == 1
    assert default_deployment("catalog", 4, BROKER).scaleup == 1


def test_default_deployment_endpoints():
    sentences = default_deployment("sentences", 2, BROKER)

    assert sentences.endpoint == "sentdetectQ"
    assert sentences.error_threshold == 0
    assert sentences.broker_url == BROKER
    assert default_deployment("concepts", 2, BROKER).endpoint == "conceptMapperQ"
    assert default_deployment("dependency_filter", 2, BROKER).endpoint == "depFilterQ"


def test_default_deployment_overrides():
    params = default_deployment("concepts", 2, BROKER, overrides={"error_threshold": 3, "scaleup": 8})

    assert params.error_threshold == 3
    assert params.scaleup == 8
    with pytest.raises(ValueError):
        default_deployment("concepts", 2, BROKER, overrides={"scaleup": 0})


def test_pipeline_deployment():
    params = pipeline_deployment("conceptmapper_go_bp", "GO_BP pipeline.", BROKER)

    assert params.service_name == "CONCEPTMAPPER_GO_BP"
    assert params.endpoint == "conceptmapper_go_bp_pipelineQ"
    assert params.scaleup == 1
    assert params.error_threshold == 1


def test_stage_engines():
    stages = dict(PMC_STAGES)
    stages["serialize"] = {"name": "serialize", "params": {"compress": True}, "deployment": {"error_threshold": 2}}

    engines = stage_engines(stages, 4, BROKER)

    assert [e.stage for e in engines] == ["sentences", "concepts", "serialize", "catalog"]
    assert [e.deployment.scaleup for e in engines] == [4, 4, 2, 1]
    assert [e.deployment.error_threshold for e in engines] == [0, 0, 2, 0]
    assert engines[2].params == {"compress": True}


def test_pmc_conceptmapper_pipeline_layout():
    runner = PipelineRunner(str(PMC_PIPELINE))

    assert [e.engine_name for e in runner.engines] == [
        "sentDetectAE",
        "conceptMapperAAE",
        "annotSerializerAE",
        "runCatalogAE",
    ]
    assert [e.deployment.endpoint for e in runner.engines] == [
        "sentdetectQ",
        "conceptMapperQ",
        "annotSerializerQ",
        "catalogAeQ",
    ]
    assert [e.deployment.scaleup for e in runner.engines] == [4, 4, 2, 1]
    assert all(e.deployment.error_threshold == 0 for e in runner.engines)
    assert runner.deployment.service_name == "PMC_CONCEPTMAPPER"
    assert runner.deployment.endpoint == "pmc_conceptmapper_pipelineQ"
    assert runner.deployment.scaleup == 1
    assert runner.deployment.error_threshold == 1


def test_write_deployment_descriptors(tmp_path):
    pipeline = pipeline_deployment("pmc_conceptmapper", "PMC pipeline.", BROKER)
    engines = stage_engines(PMC_STAGES, 2, BROKER)

    paths = write_deployment_descriptors(tmp_path / "deploy", pipeline, engines)

    assert len(paths) == len(engines) + 1
    assert paths[-1].name == "pmc_conceptmapper_aggregate.yaml"
    with open(paths[0], "r", encoding="utf-8") as f:
        descriptor = yaml.safe_load(f)
    assert descriptor["engine"] == "sentDetectAE"
    assert paths[0].name == "sentDetectAE_deploy.yaml"
    assert descriptor["deployment"]["endpoint"] == "sentdetectQ"
    with open(paths[-1], "r", encoding="utf-8") as f:
        aggregate = yaml.safe_load(f)
    assert aggregate["descriptor_type"] == AGGREGATE
    assert aggregate["deployment"]["service_name"] == "PMC_CONCEPTMAPPER"
    assert [d["endpoint"] for d in aggregate["delegates"]] == [
        "sentdetectQ",
        "conceptMapperQ",
        "annotSerializerQ",
        "catalogAeQ",
    ]
