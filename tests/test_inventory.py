from cwatch.inventory import list_projects


def test_lists_only_directories_with_a_manifest(tmp_path):
    (tmp_path / "web").mkdir()
    (tmp_path / "web" / "docker-compose.yml").write_text("services: {}\n")
    (tmp_path / "db").mkdir()
    (tmp_path / "db" / "docker-compose.yaml").write_text("services: {}\n")
    (tmp_path / "docs").mkdir()
    (tmp_path / "docs" / "README.md").write_text("hi\n")
    (tmp_path / "docker-compose.yml").write_text("services: {}\n")

    projects = {p.name: p for p in list_projects(tmp_path)}

    assert set(projects) == {"web", "db"}
    assert projects["web"].manifest == tmp_path / "web" / "docker-compose.yml"
    assert projects["db"].manifest.name == "docker-compose.yaml"
    assert projects["web"].path.is_absolute()


def test_nested_projects_are_not_discovered(tmp_path):
    nested = tmp_path / "group" / "inner"
    nested.mkdir(parents=True)
    (nested / "docker-compose.yml").write_text("services: {}\n")

    assert list_projects(tmp_path) == []


def test_listing_is_restartable(tmp_path):
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "docker-compose.yml").write_text("services: {}\n")

    assert list_projects(tmp_path) == list_projects(tmp_path)
