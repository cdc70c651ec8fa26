from fastapi.testclient import TestClient

from api import app


client = TestClient(app)


def test_implements_endpoint(goroot, gopath, tmp_path, monkeypatch):
	monkeypatch.chdir(tmp_path)
	resp = client.post(
		"/implements",
		json={
			"types": "example.com/shapes,example.com/nope",
			"interfaces": "example.com/shapes",
			"goroot": str(goroot),
			"gopath": [str(gopath)],
		},
	)
	assert resp.status_code == 200
	body = resp.json()
	assert body["direction"] == "implements"
	assert [(g["subject"], g["pointer"]) for g in body["implements"]] == [
		("example.com/shapes.Bar", False),
		("example.com/shapes.Bar", True),
		("example.com/shapes.Baz", True),
	]
	assert len(body["errors"]) == 1


def test_missing_types_is_bad_request(goroot, gopath):
	resp = client.post("/implements", json={"goroot": str(goroot), "gopath": [str(gopath)]})
	assert resp.status_code == 400
	assert "-types is required" in resp.json()["detail"]
