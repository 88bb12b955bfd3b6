#!/usr/bin/env python
"""Command-line interface for ehrbase-seal.

This module provides the main CLI entry point, handling command-line
argument parsing and orchestrating the provisioning and validation
pipelines.
"""

import sys
from pathlib import Path

import click
from icecream import ic

from ehrbase_seal import __version__, console
from ehrbase_seal.core.kubeseal import DEFAULT_CONTROLLER_NAME, DEFAULT_CONTROLLER_NAMESPACE, Kubeseal
from ehrbase_seal.core.provisioner import Provisioner
from ehrbase_seal.exceptions import SealError
from ehrbase_seal.models import DEFAULT_OUTPUT_DIR, CheckStatus, ProvisioningConfig, ScopePolicy
from ehrbase_seal.secrets.prompts import collect_credentials, prompt_namespace, prompt_scope, validate_k8s_namespace
from ehrbase_seal.secrets.registry import DEFAULT_REGISTRY, KeyMappingRegistry, load_registry
from ehrbase_seal.secrets.sealing import SealingClient

_ENV_PREFIX = "EHRBASE_SEAL"


def _check_namespace(ctx: click.Context, param: click.Parameter, value: str | None) -> str | None:
    """Click callback rejecting namespaces Kubernetes would refuse."""
    if value is None:
        return None
    result = validate_k8s_namespace(value)
    if result is not True:
        raise click.BadParameter(str(result))
    return value


def _load_registry(path: str | None) -> KeyMappingRegistry:
    """Return the registry from path, or the built-in one.

    Raises:
        click.ClickException: If the registry file is unusable.

    """
    if path is None:
        return DEFAULT_REGISTRY
    try:
        return load_registry(path)
    except SealError as e:
        raise click.ClickException(str(e)) from None


def _print_next_steps(registry: KeyMappingRegistry, output_dir: Path) -> None:
    """Print how to wire the generated secrets into the chart values."""
    console.newline()
    console.info(f"Review the generated files in {console.highlight(str(output_dir))} and commit them")
    console.step("Set sealedSecrets.enabled: false in your values to disable auto-generation")
    for secret_name in registry.secret_names():
        env_vars = ", ".join(e.env_var for e in registry.entries_for(secret_name) if e.env_var) or "-"
        console.step(f"existingSecret: {console.highlight(secret_name)} [muted]({env_vars})[/muted]")
    console.warning("The generated files are encrypted and safe to commit to Git")


def run_provision(
    provisioner: Provisioner,
    registry: KeyMappingRegistry,
) -> list[Path]:
    """Collect credentials interactively and seal them.

    Args:
        provisioner: Provisioner configured with a sealing client.
        registry: Registry the credentials are collected for.

    Returns:
        Paths of the written manifests.

    """
    credentials = collect_credentials(registry)
    ic(list(credentials))
    return provisioner.provision(credentials)


@click.group(
    help="Provision and validate EHRbase SealedSecrets",
    invoke_without_command=True,
)
@click.option("--version", "-v", required=False, is_flag=True, help="print version")
@click.option("--debug", required=False, is_flag=True, help="print debug information")
@click.pass_context
def cli(ctx: click.Context, version: bool, debug: bool) -> None:
    """Process global options.

    Args:
        ctx: Click context.
        version: Print version and exit.
        debug: Enable debug output.

    """
    if debug:
        ic.enable()
    else:
        ic.disable()

    if version:
        click.echo(__version__)
        ctx.exit(0)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command(help="Collect credentials and write sealed manifests")
@click.option(
    "--namespace",
    "-n",
    envvar=f"{_ENV_PREFIX}_NAMESPACE",
    callback=_check_namespace,
    help="namespace for the secrets (prompted if omitted)",
)
@click.option(
    "--scope",
    envvar=f"{_ENV_PREFIX}_SCOPE",
    type=click.Choice([s.value for s in ScopePolicy]),
    help="sealing scope (prompted if omitted)",
)
@click.option(
    "--output-dir",
    "-o",
    envvar=f"{_ENV_PREFIX}_OUTPUT_DIR",
    default=DEFAULT_OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="directory for sealed manifests",
)
@click.option("--cert", "-c", envvar=f"{_ENV_PREFIX}_CERT", required=False, help="certificate to seal secrets with")
@click.option("--context", envvar=f"{_ENV_PREFIX}_CONTEXT", required=False, help="kube context kubeseal uses")
@click.option("--select", required=False, is_flag=True, default=False, help="prompt for context select")
@click.option(
    "--controller-name",
    envvar=f"{_ENV_PREFIX}_CONTROLLER_NAME",
    default=DEFAULT_CONTROLLER_NAME,
    show_default=True,
    help="SealedSecrets controller name",
)
@click.option(
    "--controller-namespace",
    envvar=f"{_ENV_PREFIX}_CONTROLLER_NAMESPACE",
    default=DEFAULT_CONTROLLER_NAMESPACE,
    show_default=True,
    help="SealedSecrets controller namespace",
)
@click.option("--kubeseal-binary", envvar=f"{_ENV_PREFIX}_KUBESEAL", required=False, help="path to kubeseal")
@click.option("--registry", "registry_path", envvar=f"{_ENV_PREFIX}_REGISTRY", help="key-mapping registry YAML")
@click.option("--argocd", required=False, is_flag=True, help="add ArgoCD SkipDryRunOnMissingResource annotation")
def provision(
    namespace: str | None,
    scope: str | None,
    output_dir: str,
    cert: str | None,
    context: str | None,
    select: bool,
    controller_name: str,
    controller_namespace: str,
    kubeseal_binary: str | None,
    registry_path: str | None,
    argocd: bool,
) -> None:
    """Provision sealed manifests for every secret in the registry.

    Args:
        namespace: Namespace the secrets are sealed for.
        scope: Sealing scope.
        output_dir: Directory for sealed manifests.
        cert: Path to certificate for detached mode.
        context: Kubernetes context kubeseal uses.
        select: Prompt for Kubernetes context selection.
        controller_name: SealedSecrets controller name.
        controller_namespace: SealedSecrets controller namespace.
        kubeseal_binary: Path to the kubeseal binary.
        registry_path: Alternative key-mapping registry file.
        argocd: Add ArgoCD sync-option annotations.

    """
    registry = _load_registry(registry_path)

    try:
        kubeseal = Kubeseal(
            select_context=select,
            certificate=cert,
            context=context,
            controller_name=controller_name,
            controller_namespace=controller_namespace,
            binary=kubeseal_binary,
        )
        config = ProvisioningConfig(
            namespace=namespace or prompt_namespace(),
            scope=ScopePolicy(scope) if scope else prompt_scope(),
            output_dir=Path(output_dir),
            argocd_annotations=argocd,
        )
        ic(config)

        provisioner = Provisioner(config, SealingClient(kubeseal), registry)
        written = run_provision(provisioner, registry)
    except SealError as e:
        console.error(f"Provisioning aborted, nothing was written: {e}")
        sys.exit(1)
    except OSError as e:
        console.error(f"Cannot write sealed secrets: {e}")
        sys.exit(1)

    console.newline()
    console.summary_panel(
        "Sealed Secrets Created",
        {
            "Namespace": config.namespace,
            "Scope": config.scope.value,
            **{path.stem: str(path) for path in written},
        },
    )
    _print_next_steps(registry, config.output_dir)


@cli.command(help="Validate sealed manifests against the key-mapping registry")
@click.option(
    "--dir",
    "directory",
    envvar=f"{_ENV_PREFIX}_OUTPUT_DIR",
    default=DEFAULT_OUTPUT_DIR,
    show_default=True,
    type=click.Path(file_okay=False),
    help="directory holding sealed manifests",
)
@click.option("--registry", "registry_path", envvar=f"{_ENV_PREFIX}_REGISTRY", help="key-mapping registry YAML")
def validate(directory: str, registry_path: str | None) -> None:
    """Validate the manifests in a directory and exit non-zero on failure.

    Args:
        directory: Directory holding sealed manifests.
        registry_path: Alternative key-mapping registry file.

    """
    registry = _load_registry(registry_path)
    provisioner = Provisioner(ProvisioningConfig(output_dir=Path(directory)), registry=registry)
    report = provisioner.validate()

    console.report_table(report)
    counts = {status.value: str(len(report.with_status(status))) for status in CheckStatus}
    console.newline()

    if report.passed:
        console.summary_panel("Validation Passed", counts)
        return

    console.summary_panel("Validation Failed", counts, border_style="red")
    sys.exit(1)


if __name__ == "__main__":
    cli()
