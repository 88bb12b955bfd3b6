"""Kubernetes context selection.

This module reads the local kubeconfig to decide which context kubeseal
talks to. Nothing here contacts the cluster; kubeseal does that itself.
"""

import click
import questionary
from icecream import ic
from kubernetes import config
from kubernetes.config.config_exception import ConfigException

from ehrbase_seal import console
from ehrbase_seal.exceptions import ClusterConnectionError
from ehrbase_seal.styles import POINTER, PROMPT_STYLE, QMARK


def resolve_context(*, select_context: bool, context: str | None = None) -> str:
    """Return the Kubernetes context kubeseal should use.

    Args:
        select_context: If True, prompt the user to pick a context.
        context: An explicitly requested context; must exist in the kubeconfig.

    Returns:
        The context name.

    Raises:
        ClusterConnectionError: If the kubeconfig is invalid or missing, or
            the requested context does not exist.
        click.Abort: If the user cancels context selection.

    """
    try:
        contexts, current_context = config.list_kube_config_contexts()
    except ConfigException as e:
        raise ClusterConnectionError(f"Invalid or missing kubeconfig: {e}") from e

    context_names: list[str] = [ctx["name"] for ctx in contexts]
    ic(context_names)

    if context is not None:
        if context not in context_names:
            raise ClusterConnectionError(f"Context '{context}' not found in kubeconfig")
        selected: str | None = context
    elif select_context:
        selected = questionary.select(
            "Select context to work with",
            choices=context_names,
            style=PROMPT_STYLE,
            pointer=POINTER,
            qmark=QMARK,
        ).ask()
        if selected is None:
            console.warning("Context selection cancelled.")
            raise click.Abort()
    else:
        if not current_context:
            raise ClusterConnectionError("Kubeconfig has no current context; pass --context or --select")
        selected = str(current_context["name"])

    console.action(f"Working with {console.highlight(selected)} cluster")
    return selected
