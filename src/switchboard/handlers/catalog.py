"""Built-in specialist catalog.

Each entry uses the handler configuration format accepted by
``HandlerRegistry.from_config`` and ``handlers.toml``.
"""

from __future__ import annotations

from typing import Any

DEFAULT_HANDLERS: list[dict[str, Any]] = [
    {
        "name": "kubernetes-sme",
        "triggers": ["kubernetes", "k8s", "aks", "kubectl", "helm", "manifest", "pod"],
        "domains": ["kubernetes", "containers"],
        "capabilities": [
            "Write Deployment, Service and Ingress manifests",
            "Size resource requests and limits",
            "Configure liveness and readiness probes",
            "Troubleshoot pod scheduling and crash loops",
        ],
        "depends_on": ["images"],
    },
    {
        "name": "terraform-expert",
        "triggers": ["terraform", "infrastructure", "iac", "bicep", "provision"],
        "domains": ["infrastructure"],
        "capabilities": [
            "Structure Terraform modules and remote state",
            "Provision AKS clusters, registries and networks",
            "Plan and review infrastructure changes",
        ],
    },
    {
        "name": "docker-expert",
        "triggers": ["docker", "dockerfile", "container", "image", "compose"],
        "domains": ["images", "containers"],
        "capabilities": [
            "Write multi-stage Dockerfiles",
            "Reduce image size and attack surface",
            "Run local stacks with docker compose",
        ],
    },
    {
        "name": "devops-expert",
        "triggers": ["pipeline", "ci/cd", "github actions", "workflow", "azure devops", "release"],
        "domains": ["delivery"],
        "capabilities": [
            "Design build, test and deploy pipelines",
            "Push images to a registry from CI",
            "Gate releases on tests and scans",
        ],
        "depends_on": ["images", "infrastructure"],
    },
    {
        "name": "spring-boot-expert",
        "triggers": ["spring", "maven", "petclinic", "java", "actuator"],
        "domains": ["application"],
        "capabilities": [
            "Build and test Spring Boot services with Maven",
            "Externalise configuration with profiles",
            "Expose health endpoints through Actuator",
        ],
    },
    {
        "name": "azure-architect",
        "triggers": ["azure", "architecture", "landing zone", "acr", "key vault"],
        "domains": ["cloud"],
        "capabilities": [
            "Choose Azure services for a workload",
            "Design identity, networking and secrets handling",
            "Review cost and reliability trade-offs",
        ],
    },
    {
        "name": "documentation-writer",
        "triggers": ["readme", "documentation", "docs", "guide", "tutorial"],
        "domains": ["docs"],
        "capabilities": [
            "Write step-by-step guides",
            "Document commands and prerequisites",
            "Keep examples consistent with the code",
        ],
    },
    {
        "name": "master-orchestrator",
        "triggers": ["end-to-end", "orchestrate", "full stack", "migration plan"],
        "domains": ["coordination"],
        "capabilities": [
            "Break large requests into specialist work",
            "Review specialist output for consistency",
        ],
        "requires_aggregation": True,
    },
]
