"""Narrative session/project analysis through the local Claude Code CLI.

Results are stored per project under the reports directory and reused on
later requests unless a fresh analysis is forced. When the CLI is missing
or fails, a statistics-based fallback is returned and not stored.
"""
from __future__ import annotations

import json
import logging
import shutil
import subprocess
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from report_analyzer import config
from report_analyzer.models import AIAnalysis, AIAnalysisResult, AnalysisReport, Session
from report_analyzer.session_analyzer import analyze_sessions, count_code_blocks

logger = logging.getLogger("claude_report.ai")

MODEL_NAME = "claude-code-local"
FALLBACK_MODEL_NAME = "fallback-statistics"
_MIN_SUMMARY_CHARS = 50
_EXCERPT_CHARS = 100

COMPLEXITY_MARKER = "복잡도:"
SENTIMENT_MARKER = "감정톤:"

DEFAULT_SUMMARY = """# 세션 분석 리포트

이 세션에 대한 분석을 진행했습니다.

## 주요 내용
- 개발 작업 수행
- 코드 구현 및 개선

## 개선 제안
- 코드 리뷰 권장
- 테스트 작성 필요
- 문서화 권장

---
*복잡도: medium*
*감정톤: neutral*"""


def complexity_for(message_count: int) -> str:
    if message_count > 50:
        return "high"
    if message_count > 20:
        return "medium"
    return "low"


def _marker_value(text: str, marker: str, allowed: tuple[str, ...], default: str) -> str:
    for value in allowed:
        if f"{marker} {value}" in text:
            return value
    return default


def parse_analysis_output(raw_output: str) -> AIAnalysis:
    """Turn CLI output into an AIAnalysis; the whole text becomes the summary."""
    text = (raw_output or "").strip()
    if len(text) < _MIN_SUMMARY_CHARS:
        text = DEFAULT_SUMMARY
    return AIAnalysis(
        summary=text,
        complexity=_marker_value(text, COMPLEXITY_MARKER, ("high", "low", "medium"), "medium"),
        sentiment=_marker_value(text, SENTIMENT_MARKER, ("positive", "negative", "neutral"), "neutral"),
        topics=["개발", "프로그래밍"],
    )


def session_prompt(session: Session) -> str:
    messages = session.messages
    if not messages:
        return "세션 데이터가 비어있습니다. 분석할 수 없습니다."

    result = analyze_sessions([session])
    code_blocks = sum(count_code_blocks(m.content) for m in messages)
    first_request = next((m.content for m in messages if m.role == "user" and m.content), "")
    total = len(messages)

    return f"""다음 세션을 분석하여 MDX 형식의 리포트를 생성하세요:

세션 통계:
- 총 메시지: {total}개
- 사용자 메시지: {result.userMessages}개
- 어시스턴트 메시지: {result.assistantMessages}개
- 코드 블록: {code_blocks}개
- 주요 토픽: {', '.join(result.topics[:5]) or '미확인'}

사용자 요청:
{first_request[:_EXCERPT_CHARS] or '요청 없음'}

다음과 같은 MDX 형식으로 응답하세요:

# 세션 분석 리포트

## 주요 작업 내용

### 구현 사항

### 기술적 세부사항

## 개선 제안

## 성과 요약

---
*복잡도: {complexity_for(total)}*
*감정톤: neutral*"""


def project_prompt(report: AnalysisReport) -> str:
    summary = report.summary
    sessions = json.dumps([s.model_dump() for s in report.sessions[:5]], indent=2, ensure_ascii=False)
    return f"""다음 프로젝트의 Claude Code 대화 세션을 분석해주세요:

프로젝트 정보:
- 총 세션 수: {summary.totalSessions}
- 총 메시지 수: {summary.totalMessages}
- 코드 블록 수: {summary.totalCodeBlocks}
- 기간: {summary.dateRange.start} ~ {summary.dateRange.end}

주요 작업 내용을 분석하고 다음을 포함해서 한국어로 답변해주세요:
1. 전체 요약 (2-3문장)
2. 핵심 인사이트 3개
3. 기술적 세부사항 3개
4. 개선 권장사항 3개
5. 프로젝트 복잡도 평가 (복잡도: low/medium/high)
6. 주요 토픽 5개
7. 전반적인 감정 톤 (감정톤: positive/neutral/negative)

세션 데이터:
{sessions}"""


class AIAnalyzer:
    def __init__(self, reports_dir: Path, command: Optional[str] = None, timeout: Optional[int] = None):
        self.reports_dir = Path(reports_dir)
        self.command = command or config.CLAUDE_COMMAND
        self.timeout = timeout or config.AI_TIMEOUT_SECONDS

    def is_available(self) -> bool:
        return shutil.which(self.command) is not None

    def stored_path(self, project_id: str, session_id: Optional[str] = None) -> Path:
        if not project_id or project_id.startswith(".") or "/" in project_id or "\\" in project_id:
            raise ValueError(f"Invalid project id: {project_id}")
        if session_id:
            clean = session_id.replace(".jsonl", "").replace("/", "__")
            name = f"ai-analysis-{project_id}-{clean}.json"
        else:
            name = f"ai-analysis-{project_id}.json"
        return self.reports_dir / project_id / name

    def get_stored_analysis(self, project_id: str, session_id: Optional[str] = None) -> Optional[AIAnalysisResult]:
        """Read a stored result; always goes to disk."""
        path = self.stored_path(project_id, session_id)
        if not path.exists():
            return None
        try:
            return AIAnalysisResult.model_validate(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable AI analysis {path}: {e}")
            return None

    def _save(self, result: AIAnalysisResult) -> None:
        path = self.stored_path(result.projectId, result.sessionId)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(result.model_dump(), indent=2, ensure_ascii=False), encoding="utf-8", errors="backslashreplace")
            logger.info(f"AI analysis saved: {path}")
        except OSError as e:
            logger.error(f"Failed to save AI analysis {path}: {e}")

    def _run_cli(self, prompt: str) -> str:
        """Send ``prompt`` on stdin; raises RuntimeError when no usable output comes back."""
        try:
            result = subprocess.run(
                [self.command, "--print"],
                input=prompt,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise RuntimeError(f"Claude CLI timed out after {self.timeout}s") from e
        except OSError as e:
            raise RuntimeError(f"Claude CLI could not be started: {e}") from e

        if result.returncode != 0:
            if not (result.stdout or "").strip():
                raise RuntimeError(f"Claude CLI exited with {result.returncode}: {(result.stderr or '').strip()[:200]}")
            logger.warning(f"Claude CLI exited with {result.returncode}; using its partial output")
        return result.stdout or ""

    def _complete(self, prompt: str, project_id: str, session_id: Optional[str]) -> Optional[AIAnalysisResult]:
        if not self.is_available():
            logger.warning(f"Claude CLI '{self.command}' not found; using statistics fallback")
            return None
        try:
            output = self._run_cli(prompt)
        except RuntimeError as e:
            logger.error(f"AI analysis failed: {e}")
            return None

        result = AIAnalysisResult(
            projectId=project_id,
            sessionId=session_id,
            analysis=parse_analysis_output(output),
            analyzedAt=_now_iso(),
            model=MODEL_NAME,
        )
        self._save(result)
        return result

    def analyze_session(
        self,
        session: Session,
        project_id: str,
        session_id: Optional[str] = None,
        force: bool = False,
    ) -> AIAnalysisResult:
        session_id = session_id or session.id
        if not force:
            stored = self.get_stored_analysis(project_id, session_id)
            if stored is not None:
                logger.info(f"Using stored AI analysis for {project_id}/{session_id}")
                return stored

        result = self._complete(session_prompt(session), project_id, session_id)
        if result is None:
            stats = analyze_sessions([session])
            return self._fallback(
                project_id,
                session_id,
                message_count=stats.totalMessages,
                code_blocks=stats.codeBlocks,
                average=stats.averageMessagesPerSession,
                topics=stats.topics,
            )
        return result

    def analyze_project(self, report: AnalysisReport, project_id: str, force: bool = False) -> AIAnalysisResult:
        if not force:
            stored = self.get_stored_analysis(project_id)
            if stored is not None:
                logger.info(f"Using stored AI analysis for project {project_id}")
                return stored

        result = self._complete(project_prompt(report), project_id, None)
        if result is None:
            summary = report.summary
            return self._fallback(
                project_id,
                None,
                message_count=summary.totalMessages,
                code_blocks=summary.totalCodeBlocks,
                average=summary.averageMessagesPerSession,
                topics=summary.topTopics,
            )
        return result

    @staticmethod
    def _fallback(
        project_id: str,
        session_id: Optional[str],
        message_count: int,
        code_blocks: int,
        average: float,
        topics: list[str],
    ) -> AIAnalysisResult:
        scope = "세션" if session_id else "프로젝트"
        analysis = AIAnalysis(
            summary=f"이 {scope}에서는 총 {message_count}개의 메시지가 교환되었으며, {code_blocks}개의 코드 블록이 작성되었습니다.",
            keyInsights=[
                f"총 {message_count}개의 대화 메시지 교환",
                f"{code_blocks}개의 코드 블록 작성",
            ],
            technicalDetails=[
                f"메시지 수: {message_count}",
                f"코드 블록: {code_blocks}",
                f"평균 메시지/세션: {average:.2f}",
            ],
            recommendations=["코드 리뷰 수행 권장", "문서화 작업 필요", "테스트 코드 작성 권장"],
            complexity=complexity_for(message_count),
            topics=list(topics),
            sentiment="neutral",
        )
        return AIAnalysisResult(
            projectId=project_id,
            sessionId=session_id,
            analysis=analysis,
            analyzedAt=_now_iso(),
            model=FALLBACK_MODEL_NAME,
        )


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
