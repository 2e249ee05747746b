def test_index_route(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Noch keine Filme." in resp.get_data(as_text=True)


def test_about_route(client):
    assert client.get("/about").status_code == 200


def test_unknown_route_renders_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert "Nicht gefunden" in resp.get_data(as_text=True)
