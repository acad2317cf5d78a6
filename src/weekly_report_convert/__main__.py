from weekly_report_convert.cli import app

if __name__ == "__main__":
    app()
