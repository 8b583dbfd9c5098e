"""Interview flow integration tests over the MCP protocol."""

import json

import pytest
import yaml
from fastmcp import Client, FastMCP
from starlette.testclient import TestClient

from civicprep.config import ServerConfig
from civicprep.server import create_server


@pytest.fixture
def mcp_server(server_config: ServerConfig) -> FastMCP:
    """MCP server without a completion service."""
    return create_server(server_config)


def parse_tool_result(result: object) -> dict:
    """Extract the JSON payload from a CallToolResult."""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


class TestRegistration:
    async def test_tools_are_registered(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            tool_names = {t.name for t in await client.list_tools()}
            assert {
                "init_interview",
                "submit_response",
                "request_auto_message",
                "get_messages",
                "get_session_status",
                "end_interview",
                "get_civics_question",
                "check_civics_answer",
            } <= tool_names

    async def test_list_resources_via_mcp(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            resource_uris = {str(r.uri) for r in await client.list_resources()}
            assert "civicprep://civics/questions" in resource_uris
            assert "civicprep://interview/training" in resource_uris

    async def test_list_prompts_via_mcp(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            prompt_names = {p.name for p in await client.list_prompts()}
            assert "start_interview" in prompt_names
            assert "resume_interview" in prompt_names


class TestInterviewFlowViaMcp:
    async def test_start_answer_and_end(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            init = parse_tool_result(await client.call_tool("init_interview", {"applicant_name": "Maria Lopez"}))
            session_id = init["session_id"]
            assert init["stage"] == "greeting"
            assert "Maria Lopez" in init["officer_response"]

            turn = parse_tool_result(
                await client.call_tool("submit_response", {"session_id": session_id, "response": "Yes"})
            )
            assert turn["stage"] == "identity"
            assert turn["should_speak"] is True
            assert turn["fluency_evaluation"]["score"].endswith("/10")

            auto = parse_tool_result(await client.call_tool("request_auto_message", {"session_id": session_id}))
            assert auto["available"] is False

            transcript = parse_tool_result(await client.call_tool("get_messages", {"session_id": session_id}))
            assert [m["role"] for m in transcript["messages"]] == ["officer", "applicant", "officer"]

            status = parse_tool_result(await client.call_tool("get_session_status", {"session_id": session_id}))
            assert status["stage"] == "identity"
            assert status["questions_asked"] == 1

            ended = parse_tool_result(await client.call_tool("end_interview", {"session_id": session_id}))
            assert ended == {"session_id": session_id, "deleted": True}

            gone = parse_tool_result(await client.call_tool("get_session_status", {"session_id": session_id}))
            assert gone["error"] == "SessionNotFoundError"

    async def test_form_data_starts_review(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            init = parse_tool_result(
                await client.call_tool(
                    "init_interview",
                    {
                        "applicant_name": "Maria Lopez",
                        "n400_form_data": {
                            "current_address": "123 Main Street",
                            "city": "Los Angeles",
                            "state": "CA",
                        },
                    },
                )
            )
            session_id = init["session_id"]
            await client.call_tool("submit_response", {"session_id": session_id, "response": "Yes"})
            review = parse_tool_result(
                await client.call_tool(
                    "submit_response", {"session_id": session_id, "response": "My name is Maria Lopez"}
                )
            )
            assert review["stage"] == "n400_review"
            assert "current address" in review["officer_response"]

    async def test_error_payloads(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            missing = parse_tool_result(
                await client.call_tool("submit_response", {"session_id": "nonexistent", "response": "hi"})
            )
            assert missing["error"] == "SessionNotFoundError"

            bad_name = parse_tool_result(await client.call_tool("init_interview", {"applicant_name": " "}))
            assert bad_name["error"] == "InvalidContextError"

            init = parse_tool_result(await client.call_tool("init_interview", {"applicant_name": "Maria Lopez"}))
            empty = parse_tool_result(
                await client.call_tool("submit_response", {"session_id": init["session_id"], "response": ""})
            )
            assert empty["error"] == "InvalidInputError"


class TestCivicsToolsViaMcp:
    async def test_get_civics_question(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            found = parse_tool_result(await client.call_tool("get_civics_question", {"question_id": 1}))
            assert found["found"] is True
            assert "Republic" in found["answers"]

            missing = parse_tool_result(await client.call_tool("get_civics_question", {"question_id": 999}))
            assert missing == {"question_id": 999, "found": False}

    async def test_check_civics_answer(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            right = parse_tool_result(
                await client.call_tool("check_civics_answer", {"question_id": 1, "answer": "a republic"})
            )
            assert right["is_correct"] is True

            wrong = parse_tool_result(
                await client.call_tool("check_civics_answer", {"question_id": 1, "answer": "monarchy"})
            )
            assert wrong["is_correct"] is False


class TestResourcesAndPromptsViaMcp:
    async def test_civics_questions_resource(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            contents = await client.read_resource("civicprep://civics/questions")
            data = yaml.safe_load(contents[0].text)  # type: ignore[union-attr]
            assert len(data["questions"]) == 128

    async def test_start_interview_prompt(self, mcp_server: FastMCP) -> None:
        async with Client(mcp_server) as client:
            result = await client.get_prompt("start_interview", {"applicant_name": "Maria Lopez"})
            text = result.messages[0].content.text  # type: ignore[union-attr]
            assert "session_id" in text
            assert "Maria Lopez" in text


def test_health_route(mcp_server: FastMCP) -> None:
    client = TestClient(mcp_server.http_app(transport="streamable-http"))
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
