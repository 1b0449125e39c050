"""
LLM Client
The judge and the roast writer. Both fail open: an unavailable model
never blocks a push.
"""

import json
import re
from typing import Optional
from pydantic import BaseModel
from langchain_groq import ChatGroq
from langchain_google_genai import ChatGoogleGenerativeAI
from gitrekt.core.config import settings
from gitrekt.utils.logger import logger


JUDGE_PROMPT = """You are a senior software engineer and code reviewer.
Analyze the following git diff and determine if the code is acceptable.

Criteria for FAILURE (Reply NO):
- Obvious syntax errors in the diff
- Malicious code, backdoors, or sabotage
- Completely broken logic that will crash
- Empty or nonsense commits

Criteria for SUCCESS (Reply YES):
- Valid code changes
- Work in progress that is syntactically correct
- Documentation updates
- Standard refactoring

DIFF:
{diff}

Reply with JSON format: {{"pass": true/false, "reason": "brief explanation"}}
"""

ROAST_PROMPT = """You are a sarcastic roasting bot for "GitRekt".
A developer named "{actor}" just pushed bad code to "{repo}" on branch "{branch}".
Commit message: "{commit_message}"
{diff_context}{reason_context}
Write a short, savage roast about their code failure.
Be funny but not mean-spirited. Keep it under 280 characters.
Include hashtags like #GitRekt #BadCode #Oops
"""

MAX_JUDGE_DIFF_CHARS = 4000
MAX_ROAST_DIFF_CHARS = 1000


class Judgment(BaseModel):
    passed: bool
    reason: str


class LLMClient:
    """
    Wrapper for LLM API calls
    """

    def __init__(self, llm=None, provider: str = None):
        self._llm = llm
        self.provider = provider or settings.LLM_PROVIDER

    @property
    def llm(self):
        if self._llm is None:
            self._llm = self._build_llm()
        return self._llm

    def _build_llm(self):
        if self.provider == "groq":
            return ChatGroq(
                groq_api_key=settings.GROQ_API_KEY,
                model_name=settings.GROQ_MODEL,
                temperature=settings.LLM_TEMPERATURE,
                max_retries=2,
                timeout=60,
            )
        return ChatGoogleGenerativeAI(
            model=settings.GEMINI_MODEL,
            temperature=settings.LLM_TEMPERATURE,
            google_api_key=settings.GOOGLE_API_KEY,
            max_retries=2,
            timeout=60,
        )

    async def _complete(self, prompt: str) -> str:
        response = await self.llm.ainvoke([{"role": "user", "content": prompt}])
        content = response.content if hasattr(response, "content") else response
        if not isinstance(content, str):
            raise ValueError("LLM response missing text")
        return content.strip()

    @staticmethod
    def parse_judgment(content: str) -> Judgment:
        """First JSON object in the reply, else a YES/NO scan"""
        json_match = re.search(r"\{[\s\S]*\}", content)
        if json_match:
            try:
                parsed = json.loads(json_match.group(0))
                return Judgment(
                    passed=parsed.get("pass") is True,
                    reason=parsed.get("reason") or "No reason provided",
                )
            except (ValueError, AttributeError):
                pass

        answer = content.strip().upper()
        return Judgment(passed="YES" in answer, reason=content[:200])

    async def judge_code(self, diff: str) -> Judgment:
        try:
            content = await self._complete(JUDGE_PROMPT.format(diff=diff[:MAX_JUDGE_DIFF_CHARS]))
            judgment = self.parse_judgment(content)
            logger.info(f"[Judge] Verdict: {'pass' if judgment.passed else 'fail'} ({judgment.reason})")
            return judgment
        except Exception as e:
            logger.error(f"[Judge] Error judging code: {e}")
            return Judgment(passed=True, reason="AI judgment unavailable")

    async def generate_roast(
        self,
        actor: str,
        repo: str,
        commit_message: str,
        branch: str,
        diff: Optional[str] = None,
        fail_reason: Optional[str] = None,
    ) -> Optional[str]:
        """Roast text, or None when the model is unavailable"""
        diff_context = f"\nCode changes:\n{diff[:MAX_ROAST_DIFF_CHARS]}...\n" if diff else ""
        reason_context = f"\nThe AI detected: {fail_reason}\n" if fail_reason else ""

        try:
            return await self._complete(
                ROAST_PROMPT.format(
                    actor=actor,
                    repo=repo,
                    branch=branch,
                    commit_message=commit_message,
                    diff_context=diff_context,
                    reason_context=reason_context,
                )
            )
        except Exception as e:
            logger.error(f"[Judge] Error generating roast: {e}")
            return None


llm_client = LLMClient()
