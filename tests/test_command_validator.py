from nexus_builder.commands import (
    CommandCatalog,
    CommandSpec,
    CommandValidator,
    ParameterSpec,
    ParameterType,
)
from nexus_builder.models import Agent, GameState, Point, Size


def _agents(count: int) -> list[Agent]:
    return [Agent(id=f"agent_{index}", name=f"Agent-{index}", position=Point(0, 0), behavior="patrol") for index in range(count)]


def test_scan_out_of_bounds_reports_both_axes() -> None:
    result = CommandValidator().validate("ScanArea 100 100 5", GameState())

    assert result.is_valid is False
    assert result.errors == (
        "X coordinate 100 is out of bounds (0-49)",
        "Y coordinate 100 is out of bounds (0-49)",
    )


def test_empty_and_unknown_commands() -> None:
    validator = CommandValidator()

    assert validator.validate("   ").errors == ("Command cannot be empty",)
    assert validator.validate("Fly 1 2").errors == ("Unknown command: Fly",)


def test_deploy_parses_count_location_behavior() -> None:
    result, intent = CommandValidator().parse("DeployAgent[3] north patrol")

    assert result.is_valid
    assert intent is not None
    assert intent.command_name == "DeployAgent"
    assert intent.arguments["count"] == 3
    assert intent.arguments["location"] == "north"
    assert intent.arguments["behavior"] == "patrol"


def test_deploy_fills_defaults_and_is_case_insensitive() -> None:
    _, intent = CommandValidator().parse("deployagent[2]")
    _, upper = CommandValidator().parse("DEPLOYAGENT[1] NORTH Scout")

    assert intent is not None and upper is not None
    assert intent.arguments["location"] == "center"
    assert intent.arguments["behavior"] == "patrol"
    assert upper.arguments["location"] == "north"
    assert upper.arguments["behavior"] == "scout"


def test_deploy_accepts_coordinates() -> None:
    result, intent = CommandValidator().parse("DeployAgent[2] 10 12 guard")

    assert result.is_valid
    assert intent is not None
    assert (intent.arguments["x"], intent.arguments["y"]) == (10, 12)
    assert intent.arguments["behavior"] == "guard"

    out_of_bounds = CommandValidator().validate("DeployAgent[1] 60 10")
    assert out_of_bounds.errors == ("X coordinate 60 is out of bounds (0-49)",)


def test_deploy_rejects_bad_values() -> None:
    validator = CommandValidator()

    assert validator.validate("DeployAgent[0] center").errors == ("Agent count must be greater than 0",)
    assert validator.validate("DeployAgent[1] mars").errors[0].startswith("Invalid location: mars")
    assert validator.validate("DeployAgent[1] center dance").errors[0].startswith("Invalid behavior: dance")
    assert validator.validate("DeployAgent 3 north").errors == (
        "Invalid DeployAgent syntax. Use: DeployAgent[count] location behavior",
    )


def test_deploy_warnings_do_not_block() -> None:
    validator = CommandValidator()

    large = validator.validate("DeployAgent[11] north")
    near_cap = validator.validate("DeployAgent[10] south", GameState(agents=_agents(45)))

    assert large.is_valid
    assert large.warnings == ("Deploying more than 10 agents may impact performance",)
    assert near_cap.is_valid
    assert "Approaching maximum agent limit (50)" in near_cap.warnings


def test_scan_radius_checks() -> None:
    validator = CommandValidator()

    assert validator.validate("ScanArea 10 10 0").errors == ("Scan radius must be greater than 0",)
    wide = validator.validate("ScanArea 10 10 25")
    assert wide.is_valid
    assert wide.warnings == ("Large scan radius may be slow",)

    _, intent = validator.parse("ScanArea 10 10")
    assert intent is not None
    assert intent.arguments["radius"] == 5


def test_bounds_follow_world_size() -> None:
    state = GameState(world_size=Size(20, 10))

    assert CommandValidator().validate("ScanArea 15 15 2", state).errors == (
        "Y coordinate 15 is out of bounds (0-9)",
    )


def test_generate_world_checks_biome_and_difficulty() -> None:
    validator = CommandValidator()

    assert validator.validate("GenerateWorld alpha volcanic").errors[0].startswith("Invalid biome: volcanic")
    assert validator.validate("GenerateWorld alpha matrix 11").errors == ("Difficulty 11 is out of range (1-10)",)

    _, intent = validator.parse("GenerateWorld alpha")
    assert intent is not None
    assert intent.arguments == {"seed": "alpha", "biome": "matrix", "difficulty": 1}


def test_no_argument_commands_reject_trailing_text() -> None:
    validator = CommandValidator()

    assert validator.validate("Help").is_valid
    assert validator.validate("Help me please").errors == ("Help does not accept arguments",)


def test_validation_is_idempotent() -> None:
    validator = CommandValidator()
    state = GameState()

    for command in ("DeployAgent[12] east guard", "ScanArea 100 3 30", "Status", "nope"):
        assert validator.validate(command, state) == validator.validate(command, state)


def test_custom_command_uses_generic_grammar() -> None:
    catalog = CommandCatalog.default()
    catalog.register(
        CommandSpec(
            name="Hack",
            syntax="Hack target power",
            parameters=(
                ParameterSpec("target", ParameterType.STRING, required=True),
                ParameterSpec("power", ParameterType.NUMBER, default=1),
            ),
            is_custom=True,
        )
    )
    validator = CommandValidator(catalog)

    _, intent = validator.parse("Hack mainframe 3")
    assert intent is not None
    assert intent.arguments == {"target": "mainframe", "power": 3}

    _, defaulted = validator.parse("Hack relay")
    assert defaulted is not None
    assert defaulted.arguments["power"] == 1

    assert validator.validate("Hack").errors == ("Missing required parameter(s) for Hack: target",)


def test_empty_catalog_is_extended_after_construction() -> None:
    catalog = CommandCatalog()
    validator = CommandValidator(catalog)
    catalog.register(CommandSpec(name="Ping", syntax="Ping"))

    assert validator.catalog is catalog
    assert validator.validate("Ping").is_valid
    assert validator.validate("Status").errors == ("Unknown command: Status",)
