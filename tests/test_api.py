from datetime import datetime

from fakes import FakeGeminiClient, sdk_like_response

from review_service.app.config import Settings

DEEP_WORK = {"title": "Deep Work", "author": "Cal Newport", "focus": "集中力と生産性"}


def test_generates_review_with_character_count(make_client):
    text = "あ" * 150 + "\n\n" + "い" * 150 + " " + "う" * 100
    fake = FakeGeminiClient(response=sdk_like_response(text))
    client = make_client(fake)

    resp = client.post("/api/generate-review", json=DEEP_WORK)

    assert resp.status_code == 200
    body = resp.json()
    assert body["text"] == text
    assert body["metadata"] == {
        "characterCount": 400,
        "model": "gemini-2.5-flash",
        "searchUsed": True,
    }
    assert len(fake.prompts) == 1
    assert "Deep Work" in fake.prompts[0]
    assert "Cal Newport" in fake.prompts[0]


def test_text_is_trimmed(make_client):
    fake = FakeGeminiClient(response=sdk_like_response("\n  感想文です。  \n"))
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.json()["text"] == "感想文です。"
    assert resp.json()["metadata"]["characterCount"] == 6


def test_empty_title_is_rejected_without_calling_provider(make_client):
    fake = FakeGeminiClient(response=sdk_like_response("unused"))
    resp = make_client(fake).post("/api/generate-review", json={"title": "", "focus": "x"})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "タイトルと焦点は必須です。"
    assert body["details"] == ["タイトルと焦点は必須です。"]
    assert body["required"] == ["title", "focus"]
    assert fake.prompts == []


def test_missing_fields_are_rejected_like_empty(make_client):
    resp = make_client(FakeGeminiClient()).post("/api/generate-review", json={"title": "T"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "タイトルと焦点は必須です。"


def test_long_title_is_rejected(make_client):
    resp = make_client(FakeGeminiClient()).post(
        "/api/generate-review", json={"title": "t" * 201, "focus": "x"}
    )
    assert resp.status_code == 400
    assert "200" in resp.json()["error"]


def test_long_focus_is_rejected(make_client):
    resp = make_client(FakeGeminiClient()).post(
        "/api/generate-review", json={"title": "t", "focus": "f" * 501}
    )
    assert resp.status_code == 400
    assert "500" in resp.json()["error"]


def test_malformed_body_gets_400(make_client):
    client = make_client(FakeGeminiClient())
    resp = client.post(
        "/api/generate-review",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )
    assert resp.status_code == 400
    assert resp.json()["required"] == ["title", "focus"]

    resp = client.post("/api/generate-review", json={"title": ["list"], "focus": "x"})
    assert resp.status_code == 400


def test_rate_limit_maps_to_429(make_client):
    fake = FakeGeminiClient(error=Exception("rate limit exceeded"))
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 429
    assert resp.json() == {"error": "リクエスト制限に達しました。しばらく待ってから再試行してください。"}


def test_bad_api_key_maps_to_401(make_client):
    fake = FakeGeminiClient(error=Exception("API key not valid"))
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 401


def test_safety_error_maps_to_400(make_client):
    fake = FakeGeminiClient(error=Exception("finish_reason: SAFETY"))
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 400
    assert "安全性フィルター" in resp.json()["error"]
    assert "feedback" not in resp.json()


def test_prompt_feedback_is_400_with_payload(make_client):
    feedback = {"blockReason": "SAFETY", "safetyRatings": [{"category": "HARM_CATEGORY_HARASSMENT"}]}
    fake = FakeGeminiClient(response={"response": {"promptFeedback": feedback, "candidates": []}})

    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "リクエストが安全性フィルターによってブロックされました。"
    assert body["feedback"] == feedback


def test_prompt_feedback_takes_precedence_over_text(make_client):
    fake = FakeGeminiClient(
        response={"response": {"promptFeedback": {"blockReason": "OTHER"}, **sdk_like_response("text")}}
    )
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 400


def test_unknown_error_is_500_without_details_in_production(make_client):
    fake = FakeGeminiClient(error=RuntimeError("connection reset"))
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 500
    assert resp.json() == {"error": "感想文の生成中にエラーが発生しました。"}


def test_unknown_error_includes_details_in_development(make_client, dev_settings):
    fake = FakeGeminiClient(error=RuntimeError("connection reset"))
    resp = make_client(fake, dev_settings).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 500
    assert resp.json()["details"] == "connection reset"


def test_empty_provider_text_is_500(make_client, dev_settings):
    fake = FakeGeminiClient(response=sdk_like_response("   "))
    resp = make_client(fake, dev_settings).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 500
    assert resp.json()["details"] == "Gemini APIから有効なテキストが返されませんでした"


def test_unparseable_response_is_500(make_client):
    fake = FakeGeminiClient(response={"unexpected": True})
    resp = make_client(fake).post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 500


def test_health(make_client):
    resp = make_client(FakeGeminiClient()).get("/api/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["geminiConfigured"] is True
    assert body["nodeEnv"] == "production"
    datetime.fromisoformat(body["timestamp"].replace("Z", "+00:00"))


def test_unknown_route_is_404(make_client):
    client = make_client(FakeGeminiClient())
    assert client.get("/api/nope").json() == {"error": "Not Found"}
    assert client.get("/api/nope").status_code == 404


def test_unhandled_exception_is_generic_500(make_client):
    class Broken(FakeGeminiClient):
        model_name = None

        async def generate(self, prompt):
            return sdk_like_response("ok")

    # model_name=None breaks ReviewResult validation after the provider call
    client = make_client(Broken(), raise_server_exceptions=False)
    resp = client.post("/api/generate-review", json=DEEP_WORK)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Internal Server Error"}


def test_static_front_end_is_served_when_present(tmp_path, settings, make_client):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>読書感想文</h1>", encoding="utf-8")
    app_settings = type(settings)(gemini_api_key="k", static_dir=str(public))

    client = make_client(FakeGeminiClient(), app_settings)

    assert "読書感想文" in client.get("/").text
    assert client.get("/api/health").status_code == 200


def test_unknown_non_get_route_is_404_with_front_end_mounted(tmp_path, make_client):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>x</h1>", encoding="utf-8")
    client = make_client(FakeGeminiClient(), Settings(gemini_api_key="k", static_dir=str(public)))

    resp = client.post("/nope", json={})
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}


def test_wrong_verb_on_api_route_is_404(make_client):
    resp = make_client(FakeGeminiClient()).get("/api/generate-review")
    assert resp.status_code == 404
    assert resp.json() == {"error": "Not Found"}
