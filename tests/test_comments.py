"""Comment routes: listing by videoId and updates keyed by commentId."""


def test_create_comment(client, db):
    response = client.post("/comments", json={"commentId": "c1", "videoId": "v1", "text": "hi"})

    assert response.status_code == 201
    assert response.text.startswith("Comment added with ID: ")
    assert "commentDate" in db["comments"].docs[0]


def test_comment_on_unknown_video_is_accepted(client):
    response = client.post("/comments", json={"commentId": "c1", "videoId": "does-not-exist"})

    assert response.status_code == 201


def test_list_comments_for_video(client):
    client.post("/comments", json={"commentId": "c1", "videoId": "v1"})
    client.post("/comments", json={"commentId": "c2", "videoId": "v1"})
    client.post("/comments", json={"commentId": "c3", "videoId": "v2"})

    response = client.get("/videos/v1/comments")

    assert response.status_code == 200
    assert sorted(c["commentId"] for c in response.json()) == ["c1", "c2"]


def test_list_comments_empty_is_404(client):
    response = client.get("/videos/v1/comments")

    assert response.status_code == 404
    assert response.text == "No comments found for this video"


def test_update_comment_likes(client):
    client.post("/comments", json={"commentId": "c1", "videoId": "v1", "likes": 0})

    response = client.patch("/comments/c1/likes", json={"likes": 5})

    assert response.text == "1 document(s) updated"
    assert client.get("/videos/v1/comments").json()[0]["likes"] == 5


def test_delete_comment(client):
    client.post("/comments", json={"commentId": "c1", "videoId": "v1"})

    assert client.delete("/comments/c1").text == "1 document(s) deleted"
    assert client.delete("/comments/c1").text == "0 document(s) deleted"
    assert client.get("/videos/v1/comments").status_code == 404
