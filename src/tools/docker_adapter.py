# src/tools/docker_adapter.py
from .base import ContainerRunner, ContainerRun
import docker
import logging
import requests
import shlex
import threading


def render_command(image, volumes, command) -> str:
    """Equivalent `docker run` command line, for logging."""
    parts = ["docker", "run"]
    for host_path, container_path in volumes.items():
        parts += ["-v", f"{host_path}:{container_path}"]
    parts.append(image)
    parts += list(command)
    return " ".join(shlex.quote(p) for p in parts)


class DockerAdapter(ContainerRunner):
    def __init__(self, output_buffer_bytes=10 * 1024 * 1024, timeout=None, client=None):
        self.output_buffer_bytes = output_buffer_bytes
        self.timeout = timeout
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = docker.from_env()
        return self._client

    def run(self, image, volumes, command) -> ContainerRun:
        binds = {host_path: {"bind": container_path, "mode": "rw"} for host_path, container_path in volumes.items()}
        logging.info(f"Running container: {render_command(image, volumes, command)}")
        try:
            container = self.client.containers.run(image, command=list(command) or None, volumes=binds, detach=True)
        except docker.errors.DockerException as e:
            return ContainerRun(None, error=str(e))

        timed_out = threading.Event()
        timer = None
        if self.timeout:
            timer = threading.Timer(self.timeout, self._expire, args=(container, timed_out))
            timer.daemon = True
            timer.start()

        captured = bytearray()
        overflowed = False
        try:
            for chunk in container.logs(stream=True, follow=True, stdout=True, stderr=True):
                if len(captured) + len(chunk) > self.output_buffer_bytes:
                    overflowed = True
                    logging.warning(f"Output of {image} exceeded {self.output_buffer_bytes} bytes, stopping container")
                    self._kill(container)
                    break
                captured.extend(chunk)
            status = container.wait()
            exit_code = status.get("StatusCode")
        except (docker.errors.DockerException, requests.exceptions.RequestException) as e:
            return ContainerRun(None, bytes(captured), overflowed, timed_out.is_set(), error=str(e))
        finally:
            if timer is not None:
                timer.cancel()
            self._remove(container)
        return ContainerRun(exit_code, bytes(captured), overflowed, timed_out.is_set())

    def _expire(self, container, timed_out):
        timed_out.set()
        logging.warning(f"Container {container.id} exceeded {self.timeout}s, stopping it")
        self._kill(container)

    @staticmethod
    def _kill(container):
        try:
            container.kill()
        except docker.errors.APIError as e:
            # Already exited
            logging.debug(f"Kill of container {container.id} ignored: {e}")

    @staticmethod
    def _remove(container):
        try:
            container.remove(force=True)
        except docker.errors.APIError as e:
            logging.error(f"Failed to remove container {container.id}: {e}")
