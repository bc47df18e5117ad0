"""Security recommendations for constructs and compositions."""

from __future__ import annotations

from collections.abc import Mapping

from constructkit.spec import (
    ConstructComposition,
    ConstructDefinition,
    SecurityConsideration,
    SecurityRecommendation,
)

SEVERITY_SCORES = {"critical": 4, "high": 3, "medium": 2, "low": 1}

# consideration type -> provider -> mitigation
_MITIGATIONS: dict[str, dict[str, str]] = {
    "encryption": {
        "aws": "Enable encryption using AWS KMS for data at rest and TLS 1.2+ for data in transit",
        "firebase": "Enable Firestore encryption and use HTTPS for all client connections",
        "azure": "Use Azure Key Vault for key management and enable encryption on all storage",
        "gcp": "Use Cloud KMS for encryption keys and enable encryption by default",
        "local": "Implement AES-256 encryption for sensitive data and use TLS for connections",
    },
    "access-control": {
        "aws": "Implement least-privilege IAM policies and use AWS Organizations for account management",
        "firebase": "Configure Firebase Security Rules and use Firebase Auth for user management",
        "azure": "Use Azure AD for identity management and implement RBAC policies",
        "gcp": "Use Cloud IAM for access control and implement the principle of least privilege",
        "local": "Implement JWT-based authentication and role-based access control",
    },
    "network": {
        "aws": "Use VPCs with private subnets, Security Groups, and NACLs for network isolation",
        "firebase": "Use Firebase App Check and configure allowed domains in Firebase Console",
        "azure": "Implement Azure Virtual Networks with NSGs and Azure Firewall",
        "gcp": "Use VPC with firewall rules and Cloud Armor for DDoS protection",
        "local": "Implement network segmentation and use a reverse proxy with rate limiting",
    },
    "compliance": {
        "aws": "Use AWS Config and Security Hub for compliance monitoring",
        "firebase": "Enable audit logging and review Firebase compliance certifications",
        "azure": "Use Azure Policy and Compliance Manager for regulatory compliance",
        "gcp": "Use Cloud Security Command Center and review GCP compliance offerings",
        "local": "Implement audit logging and conduct regular security assessments",
    },
}

_REFERENCES: dict[str, list[str]] = {
    "encryption": [
        "https://www.nist.gov/publications/nist-special-publication-800-57-part-1-revision-5",
        "https://owasp.org/www-project-proactive-controls/",
    ],
    "access-control": [
        "https://www.cisecurity.org/controls/",
        "https://owasp.org/www-project-top-ten/",
    ],
    "network": [
        "https://www.sans.org/reading-room/whitepapers/firewalls/",
        "https://www.cisecurity.org/controls/",
    ],
    "compliance": [
        "https://www.iso.org/isoiec-27001-information-security.html",
        "https://www.pcisecuritystandards.org/",
    ],
}

# provider -> (category, recommendation)
_PROVIDER_RULES: dict[str, tuple[str, SecurityRecommendation]] = {
    "aws": (
        "storage",
        SecurityRecommendation(
            type="S3 Bucket Security",
            severity="high",
            description="Ensure S3 buckets are not publicly accessible",
            recommendation="Enable S3 Block Public Access, use bucket policies, and enable versioning",
            references=["https://docs.aws.amazon.com/AmazonS3/latest/userguide/security-best-practices.html"],
        ),
    ),
    "firebase": (
        "database",
        SecurityRecommendation(
            type="Firestore Security Rules",
            severity="high",
            description="Implement comprehensive Firestore security rules",
            recommendation="Define granular security rules based on user authentication and data validation",
            references=["https://firebase.google.com/docs/firestore/security/get-started"],
        ),
    ),
    "azure": (
        "api",
        SecurityRecommendation(
            type="API Management Security",
            severity="medium",
            description="Secure APIs with Azure API Management",
            recommendation="Use Azure API Management for rate limiting, authentication, and monitoring",
            references=["https://docs.microsoft.com/en-us/azure/api-management/api-management-security-policies"],
        ),
    ),
}


class SecurityAnalyzer:
    def analyze_construct(self, construct: ConstructDefinition, provider: str) -> list[SecurityRecommendation]:
        recs: list[SecurityRecommendation] = []
        recs.extend(_unmitigated(construct, provider))
        recs.extend(_provider_rules(construct, provider))
        recs.extend(_general_rules(construct))
        recs.extend(_compliance_rules(construct))
        return recs

    def analyze_composition(
        self,
        composition: ConstructComposition,
        provider: str,
        catalog: Mapping[str, ConstructDefinition],
    ) -> list[SecurityRecommendation]:
        """Per-construct findings plus composition-wide checks, de-duplicated and sorted by severity."""
        recs: list[SecurityRecommendation] = []
        definitions: list[ConstructDefinition] = []
        for inst in composition.instances:
            definition = catalog.get(inst.construct_id)
            if definition is None:
                continue
            definitions.append(definition)
            recs.extend(self.analyze_construct(definition, provider))

        recs.extend(_defense_in_depth(definitions))
        recs.extend(_network_segmentation(definitions))
        recs.extend(_data_in_transit(composition))
        return prioritize(recs)


def prioritize(recs: list[SecurityRecommendation]) -> list[SecurityRecommendation]:
    """Keep the most severe recommendation per (type, description), most severe first."""
    unique: dict[tuple[str, str], SecurityRecommendation] = {}
    for rec in recs:
        key = (rec.type, rec.description)
        current = unique.get(key)
        if current is None or SEVERITY_SCORES[rec.severity] > SEVERITY_SCORES[current.severity]:
            unique[key] = rec
    return sorted(unique.values(), key=lambda r: SEVERITY_SCORES[r.severity], reverse=True)


def mitigation_for(consideration: SecurityConsideration, provider: str) -> str:
    return _MITIGATIONS.get(consideration.type, {}).get(
        provider, f"Implement industry best practices for {consideration.type}"
    )


def _unmitigated(construct: ConstructDefinition, provider: str) -> list[SecurityRecommendation]:
    return [
        SecurityRecommendation(
            construct_id=construct.id,
            type=c.type,
            severity=c.severity,
            description=c.description,
            recommendation=mitigation_for(c, provider),
            references=list(_REFERENCES.get(c.type, [])),
        )
        for c in construct.security
        if not c.mitigation
    ]


def _provider_rules(construct: ConstructDefinition, provider: str) -> list[SecurityRecommendation]:
    rule = _PROVIDER_RULES.get(provider)
    if rule is None or construct.metadata.category != rule[0]:
        return []
    return [rule[1].model_copy(update={"construct_id": construct.id})]


def _general_rules(construct: ConstructDefinition) -> list[SecurityRecommendation]:
    out = []
    tags = construct.metadata.tags
    if "monitoring" not in tags and "logging" not in tags:
        out.append(
            SecurityRecommendation(
                construct_id=construct.id,
                type="Observability",
                severity="medium",
                description="No logging or monitoring configuration detected",
                recommendation="Implement comprehensive logging and monitoring for security events",
                references=["https://www.cisecurity.org/controls/"],
            )
        )
    if construct.metadata.category in ("database", "storage"):
        out.append(
            SecurityRecommendation(
                construct_id=construct.id,
                type="Backup and Recovery",
                severity="medium",
                description="Ensure data backup and recovery procedures",
                recommendation="Implement automated backups with encryption and test recovery procedures",
                references=["https://nvlpubs.nist.gov/nistpubs/SpecialPublications/NIST.SP.800-34r1.pdf"],
            )
        )
    return out


def _compliance_rules(construct: ConstructDefinition) -> list[SecurityRecommendation]:
    tags = construct.metadata.tags
    if "pii" not in tags and "sensitive" not in tags:
        return []
    return [
        SecurityRecommendation(
            construct_id=construct.id,
            type="Data Residency",
            severity="high",
            description="Ensure compliance with data residency requirements",
            recommendation="Configure resources in compliant regions and enable data residency controls",
            references=["https://gdpr.eu/", "https://www.hhs.gov/hipaa/"],
        )
    ]


def _defense_in_depth(definitions: list[ConstructDefinition]) -> list[SecurityRecommendation]:
    if any("security" in d.metadata.tags for d in definitions):
        return []
    return [
        SecurityRecommendation(
            type="Defense in Depth",
            severity="high",
            description="Implement multiple layers of security controls",
            recommendation="Add security constructs at different layers (network, application, data)",
            references=["https://www.nist.gov/"],
        )
    ]


def _network_segmentation(definitions: list[ConstructDefinition]) -> list[SecurityRecommendation]:
    public = [d for d in definitions if {"public", "internet-facing"} & set(d.metadata.tags)]
    private = [d for d in definitions if "private" in d.metadata.tags or d.metadata.category == "database"]
    if not public or not private:
        return []
    return [
        SecurityRecommendation(
            type="Network Segmentation",
            severity="high",
            description="Ensure proper network isolation between public and private resources",
            recommendation="Implement network segmentation using VPCs, subnets, and security groups",
            references=["https://www.cisecurity.org/controls/"],
        )
    ]


def _data_in_transit(composition: ConstructComposition) -> list[SecurityRecommendation]:
    out = []
    for inst in composition.instances:
        for conn in inst.connections:
            if conn.type == "sync" and not conn.config.get("encrypted"):
                out.append(
                    SecurityRecommendation(
                        type="Data in Transit",
                        severity="high",
                        description=f"Unencrypted connection from {inst.instance_name} to {conn.target_instance}",
                        recommendation="Enable TLS/SSL encryption for all data in transit",
                        references=["https://owasp.org/"],
                    )
                )
    return out
