"""Pydantic models for sessions, analysis results and reports."""
from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Any, Optional

# ── Conversation models ────────────────────────────────────────────

class Message(BaseModel):
    role: str = "user"  # "user" | "assistant" | "system"
    content: str = ""
    timestamp: Optional[str] = None


class Session(BaseModel):
    id: str
    messages: list[Message] = Field(default_factory=list)
    createdAt: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


# ── Analysis models ────────────────────────────────────────────────

class TimestampRange(BaseModel):
    first: Optional[str] = None
    last: Optional[str] = None


class AnalysisResult(BaseModel):
    sessionCount: int = 0
    totalMessages: int = 0
    userMessages: int = 0
    assistantMessages: int = 0
    averageMessagesPerSession: float = 0.0
    topics: list[str] = Field(default_factory=list)
    codeBlocks: int = 0
    timestamps: TimestampRange = Field(default_factory=TimestampRange)


# ── Report models ──────────────────────────────────────────────────

class DateRange(BaseModel):
    start: Optional[str] = None
    end: Optional[str] = None


class SessionReport(BaseModel):
    id: str
    sessionCount: int = 0
    totalMessages: int = 0
    userMessages: int = 0
    assistantMessages: int = 0
    codeBlocks: int = 0
    topics: list[str] = Field(default_factory=list)
    dateRange: DateRange = Field(default_factory=DateRange)


class ReportSummary(BaseModel):
    totalSessions: int = 0
    totalMessages: int = 0
    userMessages: int = 0
    assistantMessages: int = 0
    totalCodeBlocks: int = 0
    averageMessagesPerSession: float = 0.0
    dateRange: DateRange = Field(default_factory=DateRange)
    topTopics: list[str] = Field(default_factory=list)


class FailedFile(BaseModel):
    file: str
    error: str = ""


class ReportMetadata(BaseModel):
    analyzerVersion: str = ""
    platform: str = ""
    pythonVersion: str = ""


class AnalysisReport(BaseModel):
    version: str
    analyzedAt: str
    sourcePath: str
    filesAnalyzed: int = 0
    sessions: list[SessionReport] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    failedFiles: list[FailedFile] = Field(default_factory=list)
    metadata: ReportMetadata = Field(default_factory=ReportMetadata)


# ── Project browser models ─────────────────────────────────────────

class Project(BaseModel):
    id: str
    name: str
    path: str
    lastModified: str = ""
    sessionCount: int = 0
    analyzed: bool = False


class ProjectSession(BaseModel):
    id: str  # path relative to the project directory
    projectId: str
    date: str = ""  # YYYY-MM-DD of startTime
    startTime: str = ""
    endTime: str = ""
    messageCount: int = 0
    analyzed: bool = False


class DateStat(BaseModel):
    date: str
    sessionCount: int = 0
    analyzedCount: int = 0
    totalMessages: int = 0


# ── AI analysis models ─────────────────────────────────────────────

class AIAnalysis(BaseModel):
    summary: str = ""
    keyInsights: list[str] = Field(default_factory=list)
    technicalDetails: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    complexity: str = "medium"  # "low" | "medium" | "high"
    topics: list[str] = Field(default_factory=list)
    sentiment: str = "neutral"  # "positive" | "neutral" | "negative"


class AIAnalysisResult(BaseModel):
    projectId: str
    sessionId: Optional[str] = None
    analysis: AIAnalysis = Field(default_factory=AIAnalysis)
    analyzedAt: str = ""
    model: str = ""


# ── Settings models ────────────────────────────────────────────────

class AppSettings(BaseModel):
    claudeCodeProjectsPath: str = ""
    port: int = 0
    reportsDir: str = ""
    actualProjectsPath: str = ""
    pathExists: bool = False


class SuggestedPath(BaseModel):
    path: str
    label: str
    exists: bool = False
