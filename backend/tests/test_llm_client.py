from types import SimpleNamespace

from gitrekt.agents.llm_client import LLMClient, MAX_JUDGE_DIFF_CHARS


class StubChatModel:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    async def ainvoke(self, messages):
        self.prompts.append(messages[-1]["content"])
        if self.error:
            raise self.error
        return SimpleNamespace(content=self.reply)


def test_parse_judgment_json():
    judgment = LLMClient.parse_judgment('Sure!\n```json\n{"pass": false, "reason": "unclosed paren"}\n```')

    assert judgment.passed is False
    assert judgment.reason == "unclosed paren"


def test_parse_judgment_requires_literal_true():
    assert LLMClient.parse_judgment('{"pass": "yes"}').passed is False
    assert LLMClient.parse_judgment('{"pass": true}').reason == "No reason provided"


def test_parse_judgment_yes_no_fallback():
    assert LLMClient.parse_judgment("YES, this is fine").passed is True
    assert LLMClient.parse_judgment("NO. It does not compile").passed is False


async def test_judge_truncates_diff():
    model = StubChatModel(reply='{"pass": true, "reason": "ok"}')

    judgment = await LLMClient(llm=model).judge_code("+" * (MAX_JUDGE_DIFF_CHARS + 500))

    assert judgment.passed is True
    assert "+" * (MAX_JUDGE_DIFF_CHARS + 1) not in model.prompts[0]


async def test_judge_fails_open():
    judgment = await LLMClient(llm=StubChatModel(error=TimeoutError("deadline exceeded"))).judge_code("+x")

    assert judgment.passed is True
    assert judgment.reason == "AI judgment unavailable"


async def test_generate_roast():
    model = StubChatModel(reply="  Nice syntax error, champ. #GitRekt  ")

    roast = await LLMClient(llm=model).generate_roast(
        "wile", "acme/api", "feat: things", "main", diff="+def f(:", fail_reason="syntax error"
    )

    assert roast == "Nice syntax error, champ. #GitRekt"
    assert "syntax error" in model.prompts[0]
    assert '"wile"' in model.prompts[0]


async def test_generate_roast_unavailable():
    roast = await LLMClient(llm=StubChatModel(error=RuntimeError("quota"))).generate_roast(
        "wile", "acme/api", "feat: things", "main"
    )

    assert roast is None
