from factsengine import RulesEngine, RuleSet, Rule, and_, eq, fact_of, gt, lt, set_fact, setup_logging


def build_rules() -> RuleSet:
    return RuleSet(
        [
            Rule(
                name="too hot",
                condition=gt(fact_of("room.temperature"), 24),
                fire=set_fact("hvac.mode", "cooling"),
            ),
            Rule(
                name="too cold",
                condition=lt(fact_of("room.temperature"), 18),
                fire=set_fact("hvac.mode", "heating"),
            ),
            Rule(
                name="comfortable",
                condition=and_(gt(fact_of("room.temperature"), 19), lt(fact_of("room.temperature"), 23)),
                fire=set_fact("hvac.mode", "idle"),
            ),
            Rule(
                name="alarm while cooling",
                condition=and_(eq(fact_of("hvac.mode"), "cooling"), gt(fact_of("room.temperature"), 30)),
                fire=set_fact("alarm", True),
            ),
        ]
    )


def main(readings=(21, 26, 31, 22, 16)):
    logger = setup_logging()
    engine = RulesEngine(build_rules(), facts={"room": {"temperature": 21}, "alarm": False})
    engine.add_event_listener("fire", lambda _engine, event: logger.info("fired %s", event.rule.name))

    for reading in readings:
        engine.fact("room.temperature", reading)
        logger.info("temperature=%s mode=%s alarm=%s", reading, engine.fact("hvac.mode"), engine.fact("alarm"))
    return engine


if __name__ == "__main__":
    main()
