"""Container engine tasks: image build, run, stop/remove, compose."""

from __future__ import annotations

from modctl.services.context import TaskContext
from modctl.services.dispatch import TaskSpec
from modctl.services.result import TaskResult

DOCKER_FAILED = 30
DEFAULT_CONTAINER_PORT = "8080"


def _image(ctx: TaskContext) -> str:
    return f"{ctx.settings.docker_image}:{ctx.settings.docker_tag}"


def docker_build(ctx: TaskContext) -> TaskResult:
    image = _image(ctx)
    dockerfile = ctx.settings.resolve_path(ctx.settings.docker_file)
    run = ctx.run("docker-build")
    run.must_succeed(
        "docker build",
        ctx.docker(
            "build",
            "-t",
            image,
            "-f",
            str(dockerfile),
            str(ctx.root),
            failure=f"Building image {image} failed",
            code=DOCKER_FAILED,
        ),
    )
    return run.finish(image=image)


def docker_run(ctx: TaskContext) -> TaskResult:
    """Replace any previous container and start a fresh one.

    Removing the old container and creating the network are best-effort:
    both fail harmlessly when there is nothing to remove or the network
    already exists.
    """
    image = _image(ctx)
    container = str(ctx.settings.docker_container)
    network = ctx.settings.docker_network
    container_port = ctx.config.get("CONTAINER_PORT", DEFAULT_CONTAINER_PORT)
    host_port = ctx.options.port or int(str(container_port))

    run = ctx.run("docker-run")
    run.best_effort(
        "remove old container",
        ctx.docker("rm", "-f", container, failure=f"Removing {container} failed", quiet=True),
    )
    args = ["run", "-d", "--name", container, "-p", f"{host_port}:{container_port}"]
    if network:
        run.best_effort(
            "create network",
            ctx.docker(
                "network", "create", network, failure=f"Creating {network} failed", quiet=True
            ),
        )
        args += ["--network", network]
    run.must_succeed(
        "docker run",
        ctx.docker(*args, image, failure=f"Starting {container} failed", code=DOCKER_FAILED),
    )
    return run.finish(image=image, container=container, port=host_port)


def _pick_container(ctx: TaskContext) -> str:
    listing = ctx.runner.capture(
        ctx.docker(
            "ps",
            "-a",
            "--format",
            "{{.Names}}",
            failure="Listing containers failed",
            code=DOCKER_FAILED,
        )
    )
    names = sorted({line.strip() for line in listing.splitlines() if line.strip()})
    explicit = ctx.options.container or ctx.settings.docker_container
    return ctx.targets.container(names, explicit)


def docker_stop(ctx: TaskContext) -> TaskResult:
    container = _pick_container(ctx)
    run = ctx.run("docker-stop")
    run.must_succeed(
        "docker stop",
        ctx.docker("stop", container, failure=f"Stopping {container} failed", code=DOCKER_FAILED),
    )
    return run.finish(container=container)


def docker_remove(ctx: TaskContext) -> TaskResult:
    container = _pick_container(ctx)
    run = ctx.run("docker-remove")
    run.must_succeed(
        "docker rm",
        ctx.docker(
            "rm", "-f", container, failure=f"Removing {container} failed", code=DOCKER_FAILED
        ),
    )
    return run.finish(container=container)


def _compose(ctx: TaskContext, op: str, *args: str) -> TaskResult:
    compose_file = ctx.settings.resolve_path(ctx.settings.compose_file)
    run = ctx.run(op)
    run.must_succeed(
        f"docker compose {args[0]}",
        ctx.docker(
            "compose",
            "-f",
            str(compose_file),
            *args,
            failure=f"docker compose {args[0]} failed",
            code=DOCKER_FAILED,
        ),
    )
    return run.finish(compose_file=str(compose_file))


def compose_up(ctx: TaskContext) -> TaskResult:
    return _compose(ctx, "compose-up", "up", "-d")


def compose_down(ctx: TaskContext) -> TaskResult:
    return _compose(ctx, "compose-down", "down")


TASKS = (
    TaskSpec("docker-build", docker_build, "Build the image", "docker", ("docker_image",)),
    TaskSpec(
        "docker-run",
        docker_run,
        "Run the container image",
        "docker",
        ("docker_image", "docker_container"),
    ),
    TaskSpec("docker-stop", docker_stop, "Stop a container", "docker"),
    TaskSpec("docker-remove", docker_remove, "Remove a container", "docker"),
    TaskSpec("compose-up", compose_up, "Start the compose environment", "docker"),
    TaskSpec("compose-down", compose_down, "Stop the compose environment", "docker"),
)
