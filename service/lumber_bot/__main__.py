from lumber_bot.main import run

run()
