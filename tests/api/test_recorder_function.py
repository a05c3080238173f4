"""Tests for the stateless recorder function endpoint."""

URL = "/functions/v1/playwright-recorder"


class TestRecorderFunction:
    """Simulated start/stop behind one endpoint."""

    def test_start_and_stop(self, agent_client):
        response = agent_client.post(URL, json={"action": "start", "testName": "Login", "startUrl": "https://x.test"})
        assert response.status_code == 200
        started = response.json()
        assert started["success"] is True
        assert started["browserUrl"] == "https://x.test"
        assert started["message"] == "Recording started successfully"

        response = agent_client.post(URL, json={"action": "stop", "sessionId": started["sessionId"]})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["testName"] == "Login"
        assert data["actionsRecorded"] == 3
        assert len(data["testSteps"]) == 3
        assert data["testSteps"][0]["action"] == "click"
        assert "test('Login', async ({ page }) => {" in data["playwrightCode"]
        assert data["duration"] >= 0
        assert data["message"] == "Recording completed successfully"

    def test_start_requires_name_and_url(self, agent_client):
        response = agent_client.post(URL, json={"action": "start", "testName": "Login"})

        assert response.status_code == 400
        assert response.json() == {"error": "testName and startUrl are required"}

    def test_stop_requires_session_id(self, agent_client):
        response = agent_client.post(URL, json={"action": "stop"})

        assert response.status_code == 400
        assert response.json() == {"error": "sessionId is required"}

    def test_stop_unknown_session(self, agent_client):
        response = agent_client.post(URL, json={"action": "stop", "sessionId": "missing"})

        assert response.status_code == 400
        assert response.json() == {"error": "Recording session not found"}

    def test_invalid_action(self, agent_client):
        response = agent_client.post(URL, json={"action": "pause"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid action"}

    def test_does_not_touch_local_agent(self, agent_client, fake_launcher):
        agent_client.post(URL, json={"action": "start", "testName": "Login", "startUrl": "https://x.test"})

        assert fake_launcher.starts == []
        assert agent_client.get("/status").json()["isRecording"] is False

    def test_start_while_active_is_rejected(self, agent_client):
        agent_client.post(URL, json={"action": "start", "testName": "Login", "startUrl": "https://x.test"})

        response = agent_client.post(URL, json={"action": "start", "testName": "Other", "startUrl": "https://y.test"})

        assert response.status_code == 400
        assert response.json() == {"error": "Recording already in progress"}

    def test_non_post_not_allowed(self, agent_client):
        assert agent_client.get(URL).status_code == 405
