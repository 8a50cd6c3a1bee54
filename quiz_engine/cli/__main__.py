from quiz_engine.cli.main import run

run()
