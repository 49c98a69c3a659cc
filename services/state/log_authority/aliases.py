"""Canonical operation names, their aliases, and blob artifact policy.

Events arrive under many historical spellings of the same operation
(snake_case, renamed endpoints, legacy handlers). Every entry is stored under
one canonical camelCase name so that queries and reconciliation see a single
event type per operation.
"""

from __future__ import annotations

import re
from datetime import datetime

from services.state.log_authority.domain import ArtifactPolicy

CANONICAL_OPERATIONS: frozenset[str] = frozenset(
    {
        "logDataOrEvent",
        "retrieveLogsOrDataEntries",
        "getPersonalInsights",
        "generateJournalInsight",
        "ragMemoryConsolidation",
        "trustCheckIn",
        "extractMediaWisdom",
        "somaticHealingSession",
        "synthesizeWisdom",
        "getDailySynthesis",
        "recognizePatterns",
        "standingTallPractice",
        "clarifyValues",
        "unleashCreativity",
        "cultivateAbundance",
        "navigateTransitions",
        "healAncestry",
        "interpretDream",
        "optimizeEnergy",
        "systemHealthCheck",
        "generateDiscoveryInquiry",
        "submitFeedback",
        "manageCommitment",
        "listActiveCommitments",
        "trackMoodAndEmotions",
        "setPersonalGoals",
        "designHabits",
        "queryD1Database",
        "storeInKV",
        "upsertVectors",
    }
)

_EXPLICIT_ALIASES: dict[str, str] = {
    # retrieval
    "retrieve_recent_session_logs": "retrieveLogsOrDataEntries",
    "retrieveRecentSessionLogs": "retrieveLogsOrDataEntries",
    "retrieveLogs": "retrieveLogsOrDataEntries",
    "getLatestLogs": "retrieveLogsOrDataEntries",
    "retrieve": "retrieveLogsOrDataEntries",
    "retrieveLatest": "retrieveLogsOrDataEntries",
    "retrievalMeta": "retrieveLogsOrDataEntries",
    "searchR2": "retrieveLogsOrDataEntries",
    "listR2Objects": "retrieveLogsOrDataEntries",
    "getKVStoredData": "retrieveLogsOrDataEntries",
    "exportConversation": "retrieveLogsOrDataEntries",
    "exportConversationData": "retrieveLogsOrDataEntries",
    "sessionInit": "retrieveLogsOrDataEntries",
    "arkEnhancedRetrieve": "retrieveLogsOrDataEntries",
    # search and insights
    "search_logs": "getPersonalInsights",
    "searchLogs": "getPersonalInsights",
    "rag_search": "getPersonalInsights",
    "ragSearch": "getPersonalInsights",
    "search_r2_storage": "getPersonalInsights",
    "searchR2Storage": "getPersonalInsights",
    "retrieve_r2_stored_content": "getPersonalInsights",
    "get_r2_stored_content": "getPersonalInsights",
    "personal_insights": "getPersonalInsights",
    "getInsights": "getPersonalInsights",
    "getAnalytics": "getPersonalInsights",
    "getConversationAnalytics": "getPersonalInsights",
    "getWisdomAndInsights": "getPersonalInsights",
    "searchResonance": "getPersonalInsights",
    "arkEnhancedMemories": "getPersonalInsights",
    "arkEnhancedVector": "getPersonalInsights",
    "arkAdvancedFilter": "getPersonalInsights",
    # writes
    "writeLog": "logDataOrEvent",
    "logEntry": "logDataOrEvent",
    "kvWrite": "logDataOrEvent",
    "d1Insert": "logDataOrEvent",
    "promote": "logDataOrEvent",
    "arkEnhancedLog": "logDataOrEvent",
    "arkAutonomousLog": "logDataOrEvent",
    "advanced_logging_operations": "logDataOrEvent",
    # memory
    "memoryRetrieval": "ragMemoryConsolidation",
    "arkEnhancedResonance": "ragMemoryConsolidation",
    # renamed practices
    "wisdom_synthesis": "synthesizeWisdom",
    "daily_synthesis": "getDailySynthesis",
    "pattern_recognition": "recognizePatterns",
    "expose_contradictions": "recognizePatterns",
    "autonomousPatternDetect": "recognizePatterns",
    "combBehavioralAnalysis": "recognizePatterns",
    "values_clarification": "clarifyValues",
    "creativity_unleash": "unleashCreativity",
    "abundance_cultivate": "cultivateAbundance",
    "transitions_navigate": "navigateTransitions",
    "navigateTransition": "navigateTransitions",
    "ancestry_heal": "healAncestry",
    "extractWisdom": "extractMediaWisdom",
    "trackMood": "trackMoodAndEmotions",
    "generateInquiry": "generateDiscoveryInquiry",
    "socraticQuestions": "generateDiscoveryInquiry",
    "comprehensivePersonalDevelopment": "somaticHealingSession",
    "personalDevelopmentSession": "somaticHealingSession",
    "autoSuggestRitual": "somaticHealingSession",
    "transformation_contract": "manageCommitment",
    # system
    "healthCheck": "systemHealthCheck",
    "readinessCheck": "systemHealthCheck",
    "getMetrics": "systemHealthCheck",
    "getMonitoringMetrics": "systemHealthCheck",
    "globalErrorHandler": "systemHealthCheck",
    "scheduledTriggerError": "systemHealthCheck",
    "arkSystemStatus": "systemHealthCheck",
}

_ARTIFACT_POLICIES: dict[str, ArtifactPolicy] = {
    "somaticHealingSession": ArtifactPolicy.REQUIRED,
    "extractMediaWisdom": ArtifactPolicy.REQUIRED,
    "interpretDream": ArtifactPolicy.REQUIRED,
    "trustCheckIn": ArtifactPolicy.OPTIONAL,
    "recognizePatterns": ArtifactPolicy.OPTIONAL,
    "synthesizeWisdom": ArtifactPolicy.OPTIONAL,
    "getPersonalInsights": ArtifactPolicy.OPTIONAL,
    "getDailySynthesis": ArtifactPolicy.OPTIONAL,
    "optimizeEnergy": ArtifactPolicy.OPTIONAL,
    # legacy names keep the policy they were deployed with
    "transformation_contract": ArtifactPolicy.REQUIRED,
    "somatic_healing_session": ArtifactPolicy.REQUIRED,
    "trust_check_in": ArtifactPolicy.OPTIONAL,
    "pattern_recognition": ArtifactPolicy.OPTIONAL,
}

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


def _snake_case(name: str) -> str:
    """Return the snake_case spelling of one camelCase operation name."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def _build_aliases() -> dict[str, str]:
    aliases = {
        _snake_case(name): name
        for name in CANONICAL_OPERATIONS
        if _snake_case(name) != name
    }
    aliases.update(_EXPLICIT_ALIASES)
    for alias, canonical in aliases.items():
        if canonical not in CANONICAL_OPERATIONS:
            raise ValueError(f"alias {alias} targets unknown operation {canonical}")
    return aliases


OPERATION_ALIASES: dict[str, str] = _build_aliases()


def resolve_operation(name: str) -> str:
    """Return the canonical operation for ``name``; unknown names pass through."""
    if name in CANONICAL_OPERATIONS:
        return name
    return OPERATION_ALIASES.get(name, name)


def is_canonical(name: str) -> bool:
    """Return whether ``name`` is itself a canonical operation."""
    return name in CANONICAL_OPERATIONS


def all_canonical() -> list[str]:
    """Return every canonical operation name, sorted."""
    return sorted(CANONICAL_OPERATIONS)


def all_aliases() -> list[str]:
    """Return every known alias, sorted."""
    return sorted(OPERATION_ALIASES)


def artifact_policy(name: str) -> ArtifactPolicy:
    """Return the blob artifact policy for one operation name.

    Legacy names with their own policy win; otherwise the canonical name's
    policy applies and unknown operations are ``n/a``.
    """
    policy = _ARTIFACT_POLICIES.get(name)
    if policy is not None:
        return policy
    return _ARTIFACT_POLICIES.get(resolve_operation(name), ArtifactPolicy.NOT_APPLICABLE)


def artifact_key(*, canonical_operation: str, timestamp: datetime, log_id: str) -> str:
    """Return the blob key archiving one entry for its operation."""
    return f"logs/{canonical_operation}/{timestamp.date().isoformat()}/{log_id}.json"
