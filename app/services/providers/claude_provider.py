"""Claude Code CLI provider.

Uses Claude CLI (claude -p) for AI operations.

실행 환경:
- Claude CLI가 PATH에 설치되어 있어야 함
- ThreadPoolExecutor를 사용하여 동기 CLI 호출을 비동기로 래핑

재시도는 하지 않습니다. 실패하면 오케스트레이터가 다음 프로바이더로 넘어갑니다.
"""

import os
import shutil
import subprocess
import sys
import asyncio
import logging
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from app.config import get_settings
from app.exceptions import ProviderFailure

from .base import BaseProvider, ProviderResponse

# 로깅 설정
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# CLI 자체 제한 시간은 오케스트레이터 제한보다 짧게 잡아
# 오케스트레이터가 포기하기 전에 subprocess.run이 자식 프로세스를 종료하도록 함
CLI_TIMEOUT_MARGIN_SECONDS = 5.0


class ClaudeProvider(BaseProvider):
    """
    Claude Code CLI 래퍼 프로바이더.

    ThreadPoolExecutor의 max_workers는 CPU 코어 수에 따라 동적 설정:
    - 최소: 2
    - 최대: 8
    """

    name = "claude"

    def __init__(
        self,
        model: Optional[str] = None,
        enabled: Optional[bool] = None,
        timeout_seconds: Optional[float] = None,
    ):
        settings = get_settings()
        super().__init__(model or settings.claude_model)
        self.enabled = settings.claude_cli_enabled if enabled is None else enabled
        budget = settings.provider_timeout_seconds
        ceiling = max(1.0, budget - CLI_TIMEOUT_MARGIN_SECONDS)
        self.timeout_seconds = min(timeout_seconds or ceiling, ceiling)

        cpu_count = os.cpu_count() or 4
        max_workers = min(8, max(2, cpu_count))
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    def is_configured(self) -> bool:
        """CLI 사용이 켜져 있고 claude 실행 파일을 찾을 수 있을 때만 True."""
        if not self.enabled:
            return False
        return shutil.which("claude", path=self._get_env()["PATH"]) is not None

    async def generate_content(self, prompt: str, operation: str) -> ProviderResponse:
        """
        Claude Code CLI를 비동기로 실행.

        명령어: claude -p <prompt> --output-format text --model <model>
        """
        logger.info(f"[CLI] {operation} 요청 (프롬프트 {len(prompt)} chars)")
        loop = asyncio.get_running_loop()
        try:
            text = await loop.run_in_executor(self._executor, self._run_claude_sync, prompt)
        except subprocess.TimeoutExpired:
            raise ProviderFailure(self.name, f"CLI 타임아웃 ({self.timeout_seconds:.0f}초)")
        except (OSError, RuntimeError) as e:
            raise ProviderFailure(self.name, f"CLI 실행 실패: {e}")

        # CLI 텍스트 모드는 토큰 수를 알려주지 않음 → 오케스트레이터가 추정
        return ProviderResponse(text=text)

    def _get_env(self) -> dict:
        """Get environment with proper PATH for Claude CLI."""
        env = os.environ.copy()

        if sys.platform == "win32":
            extra_paths = [
                os.path.expanduser("~\\AppData\\Roaming\\npm"),
            ]
            path_separator = ";"
        else:
            extra_paths = [
                os.path.expanduser("~/.npm-global/bin"),
                "/usr/local/bin",
                "/opt/homebrew/bin",
            ]
            path_separator = ":"

        env["PATH"] = path_separator.join(extra_paths) + path_separator + env.get("PATH", "")
        return env

    def _run_claude_sync(self, prompt: str) -> str:
        """Run Claude CLI synchronously."""
        env = self._get_env()
        start_time = datetime.now()

        use_shell = sys.platform == "win32"
        result = subprocess.run(
            ["claude", "-p", prompt, "--output-format", "text", "--model", self.model],
            capture_output=True,
            text=True,
            timeout=self.timeout_seconds,
            env=env,
            shell=use_shell,
            encoding='utf-8',
        )

        elapsed = (datetime.now() - start_time).total_seconds()
        logger.info(f"[CLI] 완료: {elapsed:.1f}초, returncode={result.returncode}")

        if result.returncode != 0:
            error_msg = result.stderr or "Unknown error"
            logger.error(f"[CLI] 에러: {error_msg}")
            raise RuntimeError(f"Claude CLI error: {error_msg}")

        return result.stdout.strip()
