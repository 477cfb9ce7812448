#!/usr/bin/env python3
"""
Pipeline runner that processes YAML configuration files.

Supports multiple source types:
- text_folder: one plain-text file per document
- extracted_folder: JSON-lines records

Processes stages in sequence: sentences, concepts, dependencies,
dependency_filter, serialize, catalog
"""

import os
import sys
import argparse
from typing import Any, Callable, Dict, List, Optional

import yaml

from annot_core.config import settings
from annot_core.document import AnnotatedDocument, GOLD_ANNOTATOR_ID
from annot_pipeline.deployment import (
    DeploymentParams,
    pipeline_deployment,
    stage_engines,
    write_deployment_descriptors,
)
from annot_pipeline.stage_00_ingestion.sources import iter_source

STAGE_ORDER = ["sentences", "concepts", "dependencies", "dependency_filter", "serialize", "catalog"]

# stage -> stages it needs to have run before it
STAGE_REQUIREMENTS: Dict[str, List[str]] = {
    "concepts": ["sentences"],
    "dependency_filter": ["concepts", "dependencies"],
}

COMMIT_EVERY = 10


class PipelineRunner:
    """Runs the pipeline based on YAML configuration."""

    def __init__(
        self,
        config_path: str,
        skip_stages: Optional[List[str]] = None,
        verbose: Optional[bool] = None,
        session_factory: Optional[Callable] = None,
    ):
        """
        Initialize pipeline runner with YAML config.

        Args:
            config_path: Path to YAML configuration file
            skip_stages: Optional list of stage names to skip (e.g., ["dependency_filter"])
            verbose: Print per-annotation diagnostics (overrides config.verbose)
            session_factory: Callable returning a SQLAlchemy session for the run catalog
        """
        with open(config_path, "r") as f:
            self.config = yaml.safe_load(f) or {}
        self.sources = self.config.get("sources", [])
        all_stages = self.config.get("stages", [])
        self.session_factory = session_factory

        for stage in all_stages:
            if stage.get("name") not in STAGE_ORDER:
                raise ValueError(f"Unknown stage: {stage.get('name')}. Valid stages: {', '.join(STAGE_ORDER)}")

        # Filter out skipped stages
        if skip_stages:
            skip_set = set(skip_stages)
            stages = [s for s in all_stages if s.get("name") not in skip_set]
            skipped = [s.get("name") for s in all_stages if s.get("name") in skip_set]
            if skipped:
                print(f"[Pipeline] Skipping stages: {', '.join(skipped)}")
        else:
            stages = all_stages

        # Extract global config
        global_config = self.config.get("config", {})
        self.spacy_model = global_config.get("spacy_model") or settings.SPACY_MODEL
        self.broker_url = global_config.get("broker_url", settings.BROKER_URL)
        self.cas_pool_size = int(global_config.get("cas_pool_size", settings.CAS_POOL_SIZE))
        self.gold_annotator_id = int(global_config.get("gold_annotator_id", GOLD_ANNOTATOR_ID))
        self.verbose = bool(global_config.get("verbose", False)) if verbose is None else verbose

        self.stage_configs: Dict[str, Dict[str, Any]] = {}
        for stage in sorted(stages, key=lambda s: STAGE_ORDER.index(s["name"])):
            self.stage_configs[stage["name"]] = stage
        self._drop_unsatisfied_stages()

        pipeline_config = self.config.get("pipeline", {})
        self.description = pipeline_config.get("description", "Concept annotation pipeline.")
        self.pipeline_key = self._pipeline_key(pipeline_config)
        self.deployment = pipeline_deployment(
            pipeline_config.get("name", self.pipeline_key),
            self.description,
            self.broker_url,
            overrides=pipeline_config.get("deployment"),
        )
        self.engines = stage_engines(self.stage_configs, self.cas_pool_size, self.broker_url)

        self.stages: List[Any] = []
        self.stage_errors: Dict[str, int] = {name: 0 for name in self.stage_configs}
        self.total_processed = 0
        self.total_failed = 0
        self._initialized = False

    def _drop_unsatisfied_stages(self):
        for name in list(self.stage_configs):
            for required in STAGE_REQUIREMENTS.get(name, []):
                if required not in self.stage_configs:
                    print(f"[Pipeline] Warning: {name} stage requires {required} stage, skipping {name}")
                    del self.stage_configs[name]
                    break

    def _pipeline_key(self, pipeline_config: Dict[str, Any]) -> str:
        if "key" in pipeline_config:
            return pipeline_config["key"]
        concepts = self.stage_configs.get("concepts")
        if concepts and concepts.get("params", {}).get("name"):
            return f"CONCEPTMAPPER_{concepts['params']['name']}"
        return str(pipeline_config.get("name", "PIPELINE")).upper()

    @property
    def stage_names(self) -> List[str]:
        return list(self.stage_configs)

    def deployment_for(self, stage: str) -> DeploymentParams:
        for engine in self.engines:
            if engine.stage == stage:
                return engine.deployment
        raise KeyError(stage)

    def initialize(self):
        """Instantiate the configured stages, loading dictionaries and spaCy models once."""
        if self._initialized:
            return
        # Imported here so that configure() works without loading spaCy
        from annot_pipeline.utils.spacy_processing import get_spacy_model, has_dependency_parse
        from annot_pipeline.stage_01_sentences.sentence_detector import SentenceDetector
        from annot_pipeline.stage_02_concepts.concept_dictionary import (
            ConceptMapperParams,
            dictionary_file_for,
            load_concept_dictionary,
        )
        from annot_pipeline.stage_02_concepts.concept_mapper import ConceptMapper
        from annot_pipeline.stage_03_dependencies.dependency_parser import DependencyParser
        from annot_pipeline.stage_04_filter.dependency_filter import DependencyFilter
        from annot_pipeline.stage_04_filter.pattern_dictionary import load_pattern_dictionary
        from annot_pipeline.stage_05_output.annotation_serializer import AnnotationSerializer
        from annot_pipeline.stage_05_output.run_catalog import RunCatalog

        nlp = get_spacy_model(self.spacy_model)
        stages: List[Any] = []

        for name, stage in self.stage_configs.items():
            params = stage.get("params", {}) or {}
            if name == "sentences":
                stages.append(SentenceDetector(
                    nlp=nlp,
                    treat_line_breaks_as_sentence_boundaries=params.get(
                        "treat_line_breaks_as_sentence_boundaries", True
                    ),
                ))
            elif name == "concepts":
                cm_params = ConceptMapperParams.from_dict(params)
                dictionary_path = params.get("dictionary_path") or dictionary_file_for(
                    params.get("dictionary_dir", "."), cm_params
                )
                entries = load_concept_dictionary(dictionary_path)
                print(f"[Pipeline] Loaded {len(entries)} concepts from {dictionary_path}")
                stages.append(ConceptMapper(entries, cm_params, nlp=nlp))
            elif name == "dependencies":
                if not has_dependency_parse(nlp):
                    print("[Pipeline] Warning: spaCy model has no parser, dependency patterns will be empty")
                stages.append(DependencyParser(nlp=nlp))
            elif name == "dependency_filter":
                dictionary_path = params.get("dictionary_path") or settings.PATTERN_DICTIONARY_PATH
                if not dictionary_path:
                    raise ValueError("dependency_filter stage requires a dictionary_path")
                dictionary = load_pattern_dictionary(dictionary_path, min_count=int(params.get("min_count", 1)))
                print(f"[Pipeline] Loaded dependency patterns for {len(dictionary)} concepts from {dictionary_path}")
                stages.append(DependencyFilter(
                    dictionary,
                    unknown_concept_policy=params.get("unknown_concept_policy", "remove"),
                    gold_annotator_id=self.gold_annotator_id,
                    verbose=self.verbose,
                ))
            elif name == "serialize":
                stages.append(AnnotationSerializer(
                    output_infix=params.get("output_infix", self.pipeline_key),
                    compress=params.get("compress", True),
                    include_covered_text=params.get("include_covered_text", False),
                    output_dir=params.get("output_dir"),
                    save_to_source_directory=params.get("save_to_source_directory", True),
                ))
            elif name == "catalog":
                stages.append(RunCatalog())

        self.stages = stages
        self._initialized = True

    def configure(self, config_dir: str):
        """Write deployment descriptors for every configured service."""
        paths = write_deployment_descriptors(config_dir, self.deployment, self.engines)
        print(f"[Pipeline] Wrote {len(paths)} deployment descriptors to {config_dir}")
        return paths

    def run_stages(self, document: AnnotatedDocument, stage_names: Optional[List[str]] = None) -> AnnotatedDocument:
        """Run stages over a document without error accounting."""
        self.initialize()
        for stage in self.stages:
            if stage_names is not None and stage.name not in stage_names:
                continue
            document = stage.process(document)
        return document

    def process_document(self, document: AnnotatedDocument) -> Optional[AnnotatedDocument]:
        """
        Process a single document through all stages.

        Returns:
            The processed document, or None when a stage failed and the failure
            stayed below that stage's error threshold.

        Raises:
            RuntimeError: when a stage reaches its error threshold
        """
        self.initialize()
        for stage in self.stages:
            try:
                document = stage.process(document)
            except Exception as exc:
                self.stage_errors[stage.name] += 1
                count = self.stage_errors[stage.name]
                print(f"[Pipeline] Error in {stage.name} for document {document.doc_id}: {exc}")
                threshold = self.deployment_for(stage.name).error_threshold
                if threshold and count >= threshold:
                    raise RuntimeError(
                        f"Stage {stage.name} reached its error threshold ({count}/{threshold})"
                    ) from exc
                return None
        return document

    def iter_documents(self, on_error=None):
        for source_config in self.sources:
            source_type = source_config.get("type")
            if source_type not in ("text_folder", "extracted_folder"):
                print(f"[Pipeline] Unknown source type: {source_type}, skipping...")
                continue
            print(f"[Pipeline] Processing {source_type} source: {source_config.get('path')}")
            yield from iter_source(source_config, on_error=on_error)

    def _document_failed(self):
        self.total_failed += 1
        threshold = self.deployment.error_threshold
        if threshold and self.total_failed >= threshold:
            raise RuntimeError(
                f"Pipeline {self.pipeline_key} reached its error threshold ({self.total_failed}/{threshold})"
            )

    def _read_failed(self, path: str, exc: Exception):
        print(f"[Pipeline] Error reading {path}: {exc}")
        self.total_processed += 1
        self._document_failed()

    def run(self) -> Dict[str, Any]:
        """Run the pipeline."""
        self.initialize()

        catalog = next((s for s in self.stages if s.name == "catalog"), None)
        db = None
        run = None
        if catalog is not None:
            from annot_core.db import SessionLocal, init_db
            from annot_pipeline.stage_05_output.run_catalog import start_run

            db = (self.session_factory or SessionLocal)()
            init_db(bind=db.get_bind())
            run = start_run(db, self.pipeline_key, self.description)
            catalog.bind(db, run)
            db.commit()

        self.total_processed = 0
        self.total_failed = 0
        status = "complete"
        try:
            # unreadable source files count as failed documents too
            for document in self.iter_documents(on_error=self._read_failed):
                self.total_processed += 1
                try:
                    result = self.process_document(document)
                except RuntimeError:
                    self.total_failed += 1
                    raise
                if result is None:
                    self._document_failed()

                if db is not None and self.total_processed % COMMIT_EVERY == 0:
                    print(f"[Pipeline] Processed: {self.total_processed}, Failed: {self.total_failed}")
                    db.commit()
        except Exception:
            status = "aborted"
            raise
        finally:
            if db is not None:
                from annot_pipeline.stage_05_output.run_catalog import finish_run

                finish_run(db, run, self.total_processed, self.total_failed, status=status)
                db.commit()
                db.close()
            print(f"[Pipeline] {status.capitalize()}! Processed: {self.total_processed}, Failed: {self.total_failed}")

        return {
            "run_id": run.id if run is not None else None,
            "processed": self.total_processed,
            "failed": self.total_failed,
            "status": status,
        }


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Run a concept annotation pipeline with YAML configuration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run all stages from config
  annot-pipeline pipelines/pmc_conceptmapper.yaml

  # Run without the dependency filter
  annot-pipeline pipelines/craft_dependency_filter.yaml --skip dependency_filter

  # Only write deployment descriptors
  annot-pipeline pipelines/pmc_conceptmapper.yaml --config-dir deploy/ --configure-only
        """
    )
    parser.add_argument(
        "config",
        help="Path to pipeline YAML configuration file"
    )
    parser.add_argument(
        "--skip",
        action="append",
        dest="skip_stages",
        metavar="STAGE",
        help=f"Skip a stage (can be used multiple times). Valid stages: {', '.join(STAGE_ORDER)}"
    )
    parser.add_argument(
        "--config-dir",
        dest="config_dir",
        help="Directory where deployment descriptors are written"
    )
    parser.add_argument(
        "--configure-only",
        action="store_true",
        dest="configure_only",
        help="Write deployment descriptors and exit without processing documents"
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Print every filter decision"
    )

    args = parser.parse_args()

    config_path = args.config
    if not os.path.exists(config_path):
        print(f"Error: Config file not found: {config_path}")
        sys.exit(1)

    try:
        runner = PipelineRunner(config_path, skip_stages=args.skip_stages, verbose=args.verbose)
        if args.config_dir:
            runner.configure(args.config_dir)
        if args.configure_only:
            return
        runner.run()
    except (FileNotFoundError, ValueError, RuntimeError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)


if __name__ == "__main__":
    main()
