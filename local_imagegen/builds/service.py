"""Build service module.

This module provides the high-level build API:
- LocalBuilder.build(): main entry point - build, digest, tag, push
- LocalBuilder.labels(): builder identity labels for built resources

Artifacts are processed strictly one at a time, in input order, so that
backend output streamed to the sink stays attributable. The first failure
aborts the run; earlier artifacts keep whatever state they reached.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from contextlib import closing
from typing import TYPE_CHECKING, TextIO

from local_imagegen.builds.dispatch import run_build_for_artifact
from local_imagegen.builds.locality import is_local_cluster, resolve_skip_push
from local_imagegen.cancel import CancelToken
from local_imagegen.config import get_settings
from local_imagegen.docker.client import DockerBackendClient
from local_imagegen.errors import ImageGenError, RegistryError, TaggingError
from local_imagegen.output import write_output
from local_imagegen.types import ArtifactBuildState, BuildResult, TagOptions

if TYPE_CHECKING:
    from local_imagegen.artifacts.schema import ArtifactSpec
    from local_imagegen.builds.models import LocalBuildConfig
    from local_imagegen.builds.tag import Tagger
    from local_imagegen.config import Settings
    from local_imagegen.docker.client import BackendClient

logger = logging.getLogger(__name__)

BUILDER_LABEL = "imagegen.dev/builder"
DOCKER_API_VERSION_LABEL = "imagegen.dev/docker-api-version"


class LocalBuilder:
    """Builds artifacts with the build host's Docker daemon.

    Attributes:
        config: Build config as supplied by the caller (never modified).
        settings: Application settings.
        local_cluster: Whether the target cluster shares the host image store.
        skip_push: Effective push-skip flag.
        client: Backend client, released at the end of build().
    """

    def __init__(
        self,
        config: LocalBuildConfig,
        client: BackendClient | None = None,
        settings: Settings | None = None,
    ) -> None:
        """Initialize a LocalBuilder.

        Args:
            config: Build config.
            client: Backend client; a Docker client is created if omitted.
            settings: Application settings.

        Raises:
            ClientInitError: If the backend client cannot be created.
        """
        if settings is None:
            settings = get_settings()

        self.config = config
        self.settings = settings
        self.local_cluster = is_local_cluster(
            config.cluster_context, settings.extra_local_contexts
        )
        self.skip_push = resolve_skip_push(config, self.local_cluster)
        self.client: BackendClient = (
            client if client is not None else DockerBackendClient.from_settings(settings)
        )

    def labels(self, token: CancelToken | None = None) -> dict[str, str]:
        """Return labels identifying this builder.

        The Docker API version label is best-effort: if the version lookup
        fails the label is omitted and the error is only logged.
        """
        if token is None:
            token = CancelToken()

        labels = {BUILDER_LABEL: "local"}
        try:
            version = self.client.server_version(token)
        except ImageGenError as e:
            logger.debug("Docker version unavailable, omitting label: %s", e)
            return labels

        api_version = version.get("ApiVersion")
        if api_version:
            labels[DOCKER_API_VERSION_LABEL] = str(api_version)
        return labels

    def build(
        self,
        out: TextIO,
        tagger: Tagger,
        artifacts: Sequence[ArtifactSpec],
        token: CancelToken | None = None,
    ) -> list[BuildResult]:
        """Build, tag and optionally push every artifact in order.

        The backend client is closed when this returns or raises.

        Args:
            out: Output sink for progress and backend output.
            tagger: Tag policy producing final image references.
            artifacts: Artifacts to build, in order.
            token: Cancel token; defaults to one bounded by build_timeout.

        Returns:
            One BuildResult per artifact, in input order.

        Raises:
            ImageGenError: On the first failing artifact.
        """
        if token is None:
            token = CancelToken(timeout=self.settings.build_timeout)

        with closing(self.client):
            if self.local_cluster:
                write_output(
                    out,
                    f"Found [{self.config.cluster_context}] context, "
                    "using local docker daemon.\n",
                )

            builds: list[BuildResult] = []
            for artifact in artifacts:
                builds.append(self._build_artifact(out, tagger, artifact, token))

            logger.info("Built %d artifact(s)", len(builds))
            return builds

    def _build_artifact(
        self,
        out: TextIO,
        tagger: Tagger,
        artifact: ArtifactSpec,
        token: CancelToken,
    ) -> BuildResult:
        name = artifact.image_name
        state = ArtifactBuildState.PENDING

        try:
            token.raise_if_cancelled(name)
            write_output(out, f"Building [{name}]...\n")

            try:
                initial_tag = run_build_for_artifact(
                    self.client,
                    out,
                    artifact,
                    token,
                    bazel_binary=self.settings.bazel_binary,
                )
            except ImageGenError as e:
                raise e.with_context(f"building [{name}]", name) from e
            state = self._advance(name, ArtifactBuildState.BUILT)

            token.raise_if_cancelled(name)
            try:
                digest = self.client.digest(initial_tag, token)
            except ImageGenError as e:
                raise e.with_context(f"build and tag [{name}]: {initial_tag}", name) from e
            if not digest:
                raise RegistryError(
                    f"build and tag [{name}]: digest not found for {initial_tag}",
                    image_name=name,
                )
            state = self._advance(name, ArtifactBuildState.DIGESTED)

            token.raise_if_cancelled(name)
            try:
                tag = tagger.generate_fully_qualified_image_name(
                    artifact.workspace, TagOptions(image_name=name, digest=digest)
                )
            except ImageGenError as e:
                raise e.with_context(f"generating tag for [{name}]", name) from e
            except Exception as e:
                raise TaggingError(
                    f"generating tag for [{name}]: {e}", image_name=name
                ) from e

            try:
                self.client.tag(initial_tag, tag, token)
            except ImageGenError as e:
                raise e.with_context(f"tagging image [{name}]", name) from e
            state = self._advance(name, ArtifactBuildState.TAGGED)

            write_output(out, f"Successfully tagged {tag}\n", "writing tag status")

            if self.skip_push:
                state = self._advance(name, ArtifactBuildState.SKIPPED)
            else:
                token.raise_if_cancelled(name)
                try:
                    self.client.push(tag, out, token)
                except ImageGenError as e:
                    raise e.with_context(f"pushing [{tag}]", name) from e
                state = self._advance(name, ArtifactBuildState.PUSHED)

        except ImageGenError as e:
            logger.error(
                "Artifact %s failed after reaching %s: %s", name, state.value, e
            )
            self._advance(name, ArtifactBuildState.FAILED)
            raise

        self._advance(name, ArtifactBuildState.COMPLETE)
        return BuildResult(image_name=name, tag=tag)

    @staticmethod
    def _advance(name: str, state: ArtifactBuildState) -> ArtifactBuildState:
        logger.debug("Artifact %s -> %s", name, state.value)
        return state


__all__ = [
    "BUILDER_LABEL",
    "DOCKER_API_VERSION_LABEL",
    "LocalBuilder",
]
