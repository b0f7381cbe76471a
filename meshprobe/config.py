from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    version: str = Field(default="undefined", alias="VERSION")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")
    backend_service: str = Field(default="undefined", alias="BACKEND_SERVICE")
    backend_timeout_s: float = Field(default=10.0, gt=0, alias="BACKEND_TIMEOUT_S")

    delay_response_msec: int = Field(default=0, alias="DELAY_RESPONSE_MSEC")
    delay_response_percentage: int = Field(default=0, alias="DELAY_RESPONSE_PERCENTAGE")
    random_delay: bool = Field(default=False, alias="RANDOM_DELAY")
    fault_response_percentage: int = Field(default=0, alias="FAULT_RESPONSE_PERCENTAGE")

    k8s_uid: str = Field(default="undefined", alias="K8S_UID")
    k8s_node_name: str = Field(default="undefined", alias="K8S_NODE_NAME")
    k8s_host_ip: str = Field(default="undefined", alias="K8S_HOST_IP")
    k8s_pod_name: str = Field(default="undefined", alias="K8S_POD_NAME")
    k8s_namespace: str = Field(default="undefined", alias="K8S_NAMESPACE")
    k8s_pod_ip: str = Field(default="undefined", alias="K8S_POD_IP")
    k8s_service_account_name: str = Field(default="undefined", alias="K8S_SERVICE_ACCOUNT_NAME")
    k8s_container_name: str = Field(default="undefined", alias="K8S_CONTAINER_NAME")
    k8s_cpu_request: str = Field(default="undefined", alias="K8S_CPU_REQUEST")
    k8s_cpu_limit: str = Field(default="undefined", alias="K8S_CPU_LIMIT")
    k8s_memory_request: str = Field(default="undefined", alias="K8S_MEMORY_REQUEST")
    k8s_memory_limit: str = Field(default="undefined", alias="K8S_MEMORY_LIMIT")

    static_dir: str = Field(default="/probe", alias="STATIC_DIR")
    shutdown_timeout_s: float = Field(default=30.0, gt=0, alias="SHUTDOWN_TIMEOUT_S")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    enable_metrics_endpoint: bool = Field(default=False, alias="ENABLE_METRICS_ENDPOINT")

    # Build info, stamped in by the image build.
    git_tag: str = Field(default="", alias="GIT_TAG")
    git_commit: str = Field(default="", alias="GIT_COMMIT")
    git_tree_state: str = Field(default="", alias="GIT_TREE_STATE")

    @property
    def backend_urls(self) -> list[str]:
        return [url.strip() for url in self.backend_service.split(",") if url.strip()]

    def identity(self) -> dict[str, str]:
        return {
            "uid": self.k8s_uid,
            "node_name": self.k8s_node_name,
            "host_ip": self.k8s_host_ip,
            "pod_name": self.k8s_pod_name,
            "namespace": self.k8s_namespace,
            "pod_ip": self.k8s_pod_ip,
            "service_account_name": self.k8s_service_account_name,
            "container_name": self.k8s_container_name,
            "cpu_request": self.k8s_cpu_request,
            "cpu_limit": self.k8s_cpu_limit,
            "memory_request": self.k8s_memory_request,
            "memory_limit": self.k8s_memory_limit,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
